"""
Unit Tests: powiadomienia SMS o zamowieniu
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from storefront.services.notification_service import (
    NotificationService,
    SmsClient,
    format_phone_number,
    order_message,
    send_order_notification_task,
)


class TestFormatting:

    @pytest.mark.parametrize(
        "phone, expected",
        [
            ("01711-000000", "8801711000000"),
            ("+880 1711 000000", "8801711000000"),
            ("", ""),
        ],
    )
    def test_format_phone_number(self, phone, expected):
        assert format_phone_number(phone) == expected

    def test_order_message_uses_taka(self):
        assert "৳1,250.00" in order_message(7, "1250")
        assert "#7" in order_message(7, "1250")


class TestSmsClient:

    def test_not_configured_without_key(self):
        assert not SmsClient(base_url="https://sms.example.com", api_key="").configured

    def test_send_posts_form(self):
        response = MagicMock()
        response.json.return_value = {"error": 0}
        with patch("storefront.services.notification_service.requests.post", return_value=response) as post:
            result = SmsClient(base_url="https://sms.example.com/", api_key="k").send("01711000000", "hi")

        assert result == {"error": 0}
        post.assert_called_once()
        assert post.call_args.args[0] == "https://sms.example.com/sendsms"
        assert post.call_args.kwargs["data"] == {"api_key": "k", "msg": "hi", "to": "8801711000000"}

    def test_send_retries_then_raises(self):
        with patch("storefront.services.notification_service.requests.post",
                   side_effect=requests.ConnectionError("down")) as post:
            with patch("tenacity.nap.time.sleep"):
                with pytest.raises(requests.ConnectionError):
                    SmsClient(base_url="https://sms.example.com", api_key="k").send("01711000000", "hi")

        assert post.call_count == 3


    def test_client_error_is_not_retried(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("bad key", response=MagicMock(status_code=401))
        with patch("storefront.services.notification_service.requests.post", return_value=response) as post:
            with pytest.raises(requests.HTTPError):
                SmsClient(base_url="https://sms.example.com", api_key="k").send("01711000000", "hi")

        assert post.call_count == 1

    def test_gateway_error_is_retried(self):
        failing = MagicMock()
        failing.raise_for_status.side_effect = requests.HTTPError("down", response=MagicMock(status_code=503))
        ok = MagicMock()
        ok.json.return_value = {"error": 0}
        with patch("storefront.services.notification_service.requests.post", side_effect=[failing, ok]) as post:
            with patch("tenacity.nap.time.sleep"):
                result = SmsClient(base_url="https://sms.example.com", api_key="k").send("01711000000", "hi")

        assert result == {"error": 0}
        assert post.call_count == 2


class TestTask:

    def test_skipped_when_sms_disabled(self):
        assert send_order_notification_task.run(1, "01711000000", "80.00") == {"order_id": 1, "status": "skipped"}

    def test_service_queues_task(self):
        with patch.object(send_order_notification_task, "delay") as delay:
            NotificationService.send_order_notification(3, "01711000000", "80.00")
        delay.assert_called_once_with(3, "01711000000", "80.00")
