# storefront/main.py
from fastapi import FastAPI
import uvicorn

from storefront.api.routers import carts, health, orders
from storefront.data.database import Base, engine, init_db
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    logger.info("Inicjalizacja bazy danych...")
    init_db()
    logger.info(f"Tabele w Base.metadata: {list(Base.metadata.tables.keys())} ({engine.dialect.name})")

    app = FastAPI(
        title="Storefront Cart & Checkout",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
