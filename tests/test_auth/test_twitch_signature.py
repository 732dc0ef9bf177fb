"""Tests for EventSub signature computation and verification."""

import hashlib
import hmac

from freegames.auth.twitch_signature import (
    SIGNATURE_PREFIX,
    compute_signature,
    verify_signature,
)

SECRET = "s3cret"


def _reference(secret: str, message: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class TestComputeSignature:

    def test_signs_id_timestamp_and_body_concatenated(self):
        assert compute_signature(SECRET, "m1", "t1", b"b1") == _reference(SECRET, b"m1t1b1")

    def test_has_sha256_prefix_and_hex_digest(self):
        signature = compute_signature(SECRET, "m1", "t1", b"{}")
        assert signature.startswith(SIGNATURE_PREFIX)
        assert len(signature) == len(SIGNATURE_PREFIX) + 64

    def test_missing_headers_treated_as_empty(self):
        assert compute_signature(SECRET, None, None, b"body") == _reference(SECRET, b"body")

    def test_body_bytes_used_verbatim(self):
        body = '{"name":"Pokémon"}'.encode("utf-8")
        assert compute_signature(SECRET, "m", "t", body) == _reference(SECRET, b"mt" + body)


class TestVerifySignature:

    def test_valid_signature(self):
        signature = _reference(SECRET, b"m1t1b1")
        assert verify_signature(SECRET, "m1", "t1", b"b1", signature) is True

    def test_single_byte_change_in_body_fails(self):
        signature = _reference(SECRET, b"m1t1b1")
        assert verify_signature(SECRET, "m1", "t1", b"b2", signature) is False

    def test_changed_message_id_fails(self):
        signature = _reference(SECRET, b"m1t1b1")
        assert verify_signature(SECRET, "m2", "t1", b"b1", signature) is False

    def test_changed_timestamp_fails(self):
        signature = _reference(SECRET, b"m1t1b1")
        assert verify_signature(SECRET, "m1", "t2", b"b1", signature) is False

    def test_wrong_secret_fails(self):
        signature = _reference("other", b"m1t1b1")
        assert verify_signature(SECRET, "m1", "t1", b"b1", signature) is False

    def test_missing_prefix_fails(self):
        signature = _reference(SECRET, b"m1t1b1").removeprefix("sha256=")
        assert verify_signature(SECRET, "m1", "t1", b"b1", signature) is False

    def test_garbage_signature_fails(self):
        assert verify_signature(SECRET, "m1", "t1", b"b1", "") is False
