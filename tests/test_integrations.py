# Overview: Pytest coverage for provider failures in the S3 blob store and the Razorpay client.

import pytest
import requests
from botocore.exceptions import ClientError

from dresscode.errors import InternalError
from dresscode.integrations.blob_store import S3BlobStore
from dresscode.integrations.payment_gateway import PaymentGatewayError, RazorpayGateway


class _DeniedS3Client:
    def put_object(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "User arn:aws:iam::123456789012:user/ci is not authorized"}},
            "PutObject",
        )


class _RecordingS3Client:
    def __init__(self):
        self.calls = []

    def put_object(self, **kwargs):
        self.calls.append(kwargs)


class TestS3BlobStore:

    @pytest.fixture
    def blob_store(self):
        return S3BlobStore("dresscode-invoices", "ap-south-1")

    def test_upload_returns_public_url(self, blob_store):
        blob_store.client = _RecordingS3Client()
        url = blob_store.put(b"%PDF", "invoices/INV-1.pdf", "application/pdf")

        assert url == "https://dresscode-invoices.s3.ap-south-1.amazonaws.com/invoices/INV-1.pdf"
        assert blob_store.client.calls[0]["ContentType"] == "application/pdf"

    def test_provider_error_text_is_not_exposed(self, blob_store, caplog):
        blob_store.client = _DeniedS3Client()
        with pytest.raises(InternalError) as excinfo:
            blob_store.put(b"%PDF", "invoices/INV-1.pdf")

        assert excinfo.value.message == "Invoice upload failed"
        assert "AccessDenied" not in str(excinfo.value.to_dict())
        assert "arn:aws" not in str(excinfo.value.to_dict())
        assert "AccessDenied" in caplog.text

    def test_unconfigured_bucket(self):
        with pytest.raises(InternalError, match="not configured"):
            S3BlobStore("", "ap-south-1").put(b"x", "k")


class TestRazorpayGateway:

    def test_network_error_text_is_not_exposed(self, monkeypatch, caplog):
        def refuse(*args, **kwargs):
            raise requests.exceptions.ConnectionError("HTTPSConnectionPool(host='api.razorpay.com'): refused")

        monkeypatch.setattr(requests, "post", refuse)
        gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
        with pytest.raises(PaymentGatewayError) as excinfo:
            gateway.create_order_intent(10000, "INR", "ORD1")

        assert excinfo.value.to_dict() == {"error": "Payment gateway unavailable"}
        assert "ORD1" in caplog.text

    def test_missing_credentials(self):
        with pytest.raises(PaymentGatewayError, match="not configured"):
            RazorpayGateway("", "").create_order_intent(10000, "INR", "ORD1")

    def test_signature_round_trip(self):
        gateway = RazorpayGateway("rzp_test_key", "rzp_test_secret")
        signature = gateway.expected_signature("order_1", "pay_1")

        assert gateway.verify_signature("order_1", "pay_1", signature)
        assert not gateway.verify_signature("order_1", "pay_2", signature)
        assert not gateway.verify_signature("order_1", "pay_1", None)
