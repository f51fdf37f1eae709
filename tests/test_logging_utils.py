"""
Tests for log sanitization helpers and the log formatter.
"""
import logging
from relay.core.logging_config import RequestIDFormatter
from relay.core.logging_utils import (
    MASK,
    mask_headers,
    mask_sensitive_data,
    redact_secrets,
    sanitize_log_message,
)


class TestMasking:
    """Tests for masking sensitive values."""

    def test_masks_key_fields(self):
        """Fields naming keys, tokens or secrets are masked."""
        masked = mask_sensitive_data({
            "ApiKey": "abc",
            "x-api-key": "abc",
            "appid": "abc",
            "password": "hunter2",
            "name": "My App",
        })

        assert masked["ApiKey"] == MASK
        assert masked["x-api-key"] == MASK
        assert masked["appid"] == MASK
        assert masked["password"] == MASK
        assert masked["name"] == "My App"

    def test_request_id_is_kept(self):
        """Request IDs are never masked."""
        masked = mask_sensitive_data({"request_id": "1234", "RequestID": "5678"})

        assert masked == {"request_id": "1234", "RequestID": "5678"}

    def test_nested_structures(self):
        """Masking applies inside lists and nested dicts."""
        masked = mask_sensitive_data({"params": [{"key": "secret", "q": "song"}]})

        assert masked == {"params": [{"key": MASK, "q": "song"}]}

    def test_mask_headers(self):
        """Credential headers are masked, others kept."""
        masked = mask_headers({"X-API-Key": "abc", "Authorization": "Bearer x", "Accept": "*/*"})

        assert masked == {"X-API-Key": MASK, "Authorization": MASK, "Accept": "*/*"}

    def test_redact_secrets(self):
        """Known credential values are removed from free text."""
        text = "GET https://api.test/search?key=s3cr3t failed"

        assert redact_secrets(text, ["s3cr3t", None, ""]) == f"GET https://api.test/search?key={MASK} failed"


class TestSanitizeLogMessage:
    """Tests for structured log messages."""

    def test_appends_context(self):
        """Context is appended as key: value pairs, masked."""
        message = sanitize_log_message("API key issued", Name="My App", ApiKey="abc")

        assert message == f"API key issued | Name: My App | ApiKey: {MASK}"

    def test_request_id_last(self):
        """The request ID goes at the end for the formatter to pick up."""
        message = sanitize_log_message("Done", Path="/api", RequestID="req-1")

        assert message == "Done | Path: /api | RequestID: req-1"

    def test_formatter_lifts_request_id(self):
        """The formatter moves a UUID request ID into its own column."""
        request_id = "123e4567-e89b-12d3-a456-426614174000"
        record = logging.LogRecord(
            "relay", logging.INFO, __file__, 10,
            sanitize_log_message("Done", RequestID=request_id), None, None
        )

        output = RequestIDFormatter().format(record)

        assert f"[{request_id}]" in output
        assert output.endswith("Done")

    def test_formatter_system_marker(self):
        """Records without a request ID are marked as system messages."""
        record = logging.LogRecord("relay", logging.INFO, __file__, 10, "Startup", None, None)

        assert "[SYSTEM]" in RequestIDFormatter().format(record)
