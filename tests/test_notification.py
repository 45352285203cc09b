"""
Tests for push envelope decoding and cursor ordering.
"""

import base64
import json

import pytest

from gmailrelay.domain.entities.cursor import is_newer
from gmailrelay.domain.entities.notification import MailboxNotification, decode_envelope
from gmailrelay.domain.errors import DecodeError


def _envelope(data: str) -> bytes:
    return json.dumps({"message": {"data": data, "messageId": "1"}, "subscription": "s"}).encode()


class TestDecodeEnvelope:
    def test_decodes_notification(self, push_body):
        notification = decode_envelope(push_body("a@x.com", "50"))
        assert notification == MailboxNotification(email_address="a@x.com", history_id="50")

    def test_numeric_history_id_becomes_string(self, push_body):
        notification = decode_envelope(push_body("a@x.com", 12345))
        assert notification.history_id == "12345"

    def test_accepts_unpadded_urlsafe_data(self):
        payload = json.dumps({"emailAddress": "a@x.com", "historyId": "7"}).encode()
        data = base64.urlsafe_b64encode(payload).decode().rstrip("=")
        assert decode_envelope(_envelope(data)).history_id == "7"

    def test_not_json(self):
        with pytest.raises(DecodeError):
            decode_envelope(b"not json")

    def test_missing_message(self):
        with pytest.raises(DecodeError):
            decode_envelope(json.dumps({"subscription": "s"}))

    def test_data_not_json(self):
        data = base64.b64encode(b"hello").decode()
        with pytest.raises(DecodeError):
            decode_envelope(_envelope(data))

    def test_data_missing_fields(self):
        data = base64.b64encode(json.dumps({"emailAddress": "a@x.com"}).encode()).decode()
        with pytest.raises(DecodeError, match="historyId"):
            decode_envelope(_envelope(data))

    def test_data_is_not_object(self):
        data = base64.b64encode(json.dumps([1, 2]).encode()).decode()
        with pytest.raises(DecodeError):
            decode_envelope(_envelope(data))


class TestIsNewer:
    def test_numeric_comparison(self):
        assert is_newer("50", "40")
        assert is_newer("100", "99")
        assert not is_newer("40", "50")
        assert not is_newer("40", "40")

    def test_opaque_cursors_compare_by_equality(self):
        assert is_newer("abc", "abd")
        assert not is_newer("abc", "abc")
