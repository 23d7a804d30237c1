import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import get_lock_service
from storefront.main import app
from storefront.services.lock_service import LockService


@pytest.fixture
def client(fake_redis):
    app.dependency_overrides[get_lock_service] = lambda: LockService(client=fake_redis)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def checkout_payload(billing):
    return {
        "billing": billing.model_dump(),
        "same_as_billing": True,
        "payment_method": "bkash",
        "notes": "Prosze dzwonic przed dostawa",
    }
