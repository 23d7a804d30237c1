# storefront/services/notification_service.py
import re

import requests

from storefront.celery_worker import celery_app
from storefront.utils.retry import http_retry
from storefront.utils.settings import SMS_API_URL, SMS_API_KEY, SHOP_NAME
from storefront.services.price_resolver import format_price
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def format_phone_number(phone: str) -> str:
    """Numer w formacie bramki: same cyfry, wiodace 0 zamienione na 880."""
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = "880" + digits[1:]
    return digits


def order_message(order_id: int, total) -> str:
    return f"{SHOP_NAME}: order #{order_id} received, total {format_price(total)}. We will contact you soon."


class SmsClient:
    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: int = 5):
        self.base_url = (base_url if base_url is not None else SMS_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else SMS_API_KEY
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    @http_retry()
    def send(self, phone: str, message: str) -> dict:
        url = f"{self.base_url}/sendsms"
        logger.info(f"SmsClient POST {url}")

        resp = requests.post(
            url,
            data={"api_key": self.api_key, "msg": message, "to": format_phone_number(phone)},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()


class NotificationService:
    """
    Powiadomienia o zamowieniach.
    Celery - wysylka poza requestem, zamowienie nie czeka na bramke SMS.
    """

    @staticmethod
    def send_order_notification(order_id: int, phone: str, total: str):
        send_order_notification_task.delay(order_id, phone, total)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(order_id: int, phone: str, total: str):
    client = SmsClient()
    if not client.configured:
        logger.info(f"[NOTIFICATION] SMS wylaczone, zamowienie {order_id} bez powiadomienia")
        return {"order_id": order_id, "status": "skipped"}

    result = client.send(phone, order_message(order_id, total))
    logger.info(f"[NOTIFICATION] Order {order_id}: SMS sent to {format_phone_number(phone)}")
    return {"order_id": order_id, "status": "sent", "gateway": result}
