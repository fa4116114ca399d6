import json
import unittest
from types import SimpleNamespace
from unittest import mock

from stockledger.services import messaging_service
from stockledger.services.messaging_service import (
    build_payload,
    notify_channel,
    send_channel_message,
    validate_api_url,
)


def _settings(api_url="https://api.line.me/v2/bot/message/push", token="secret"):
    return SimpleNamespace(CHANNEL_API_URL=api_url, CHANNEL_ACCESS_TOKEN=token)


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def getcode(self):
        return self.status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class MessagingServiceTest(unittest.TestCase):
    def test_line_payload_uses_messages_list(self):
        payload = build_payload("https://api.line.me/v2/bot/message/push", "IN P-100", "group-1")
        self.assertEqual(payload["to"], "group-1")
        self.assertEqual(payload["messages"], [{"type": "text", "text": "IN P-100"}])

    def test_generic_payload(self):
        payload = build_payload("https://chat.internal.local/send", "OUT P-100", "group-1")
        self.assertEqual(payload, {"to": "group-1", "message": "OUT P-100"})

    def test_long_text_is_truncated(self):
        payload = build_payload("https://chat.internal.local/send", "x" * 6000, "group-1")
        self.assertEqual(len(payload["message"]), 5000)

    def test_validate_api_url_accepts_https(self):
        self.assertEqual(
            validate_api_url("https://api.line.me/v2/bot/message/push"),
            "https://api.line.me/v2/bot/message/push",
        )

    def test_validate_api_url_rejects_non_http_scheme(self):
        with self.assertRaises(RuntimeError):
            validate_api_url("file:///tmp/messages")

    def test_send_requires_configuration(self):
        with mock.patch.object(messaging_service, "get_settings", return_value=_settings(api_url=None)):
            with self.assertRaises(RuntimeError):
                send_channel_message("hello", "group-1")
        with mock.patch.object(messaging_service, "get_settings", return_value=_settings(token="")):
            with self.assertRaises(RuntimeError):
                send_channel_message("hello", "group-1")

    def test_send_posts_json_with_bearer_token(self):
        with mock.patch.object(messaging_service, "get_settings", return_value=_settings()), \
                mock.patch.object(messaging_service.request, "urlopen", return_value=FakeResponse()) as urlopen:
            send_channel_message("IN P-100", "group-1")

        req = urlopen.call_args[0][0]
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.get_header("Authorization"), "Bearer secret")
        self.assertEqual(json.loads(req.data.decode("utf-8"))["to"], "group-1")

    def test_notify_channel_logs_failure(self):
        with mock.patch.object(messaging_service, "get_settings", return_value=_settings(api_url="")):
            with self.assertLogs("stockledger.services.messaging_service", level="ERROR"):
                self.assertFalse(notify_channel("hello", "group-1"))

    def test_notify_channel_reports_success(self):
        with mock.patch.object(messaging_service, "get_settings", return_value=_settings()), \
                mock.patch.object(messaging_service.request, "urlopen", return_value=FakeResponse()):
            self.assertTrue(notify_channel("hello", "group-1"))


if __name__ == "__main__":
    unittest.main()
