import pytest

from config.settings import mask_sensitive_data


class TestSensitiveDataMasking:
    def test_email_masked_in_log_output(self):
        event_dict = {"event": "test", "user": "ana.perez@example.com"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "ana.perez@example.com" not in result["user"]
        assert "***MASKED***" in result["user"]

    def test_password_masked_in_log_output(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked_in_log_output(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    @pytest.mark.parametrize(
        "raw", ["secret: hunter2", "Authorization=Bearer.abc", "PASSWD=x9"]
    )
    def test_other_credentials_masked(self, raw):
        result = mask_sensitive_data(None, None, {"event": "test", "raw": raw})
        assert "***MASKED***" in result["raw"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {
            "event": "order_item.created",
            "order_id": "0190a1b2-0000-7000-8000-000000000001",
            "quantity": 4,
        }
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_id"] == "0190a1b2-0000-7000-8000-000000000001"
        assert result["event"] == "order_item.created"
        assert result["quantity"] == 4
