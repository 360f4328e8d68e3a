from django.test import SimpleTestCase
from rest_framework import exceptions

from core.exceptions import PaymentRequired, api_exception_handler


class ExceptionHandlerTest(SimpleTestCase):
    def test_payment_required_keeps_x402_body(self):
        payload = {"error": "Payment Required", "reason": "DailyLimitExceeded", "paymentInfo": None}
        resp = api_exception_handler(PaymentRequired(payload), {})
        self.assertEqual(resp.status_code, 402)
        self.assertEqual(resp.data, payload)

    def test_detail_wrapped_in_envelope(self):
        resp = api_exception_handler(exceptions.PermissionDenied(), {})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.data["error"]["code"], "PERMISSION_DENIED")
        self.assertNotIn("details", resp.data["error"])

    def test_unhandled_exception_passes_through(self):
        self.assertIsNone(api_exception_handler(RuntimeError("db down"), {}))

    def test_health(self):
        resp = self.client.get("/health/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")
