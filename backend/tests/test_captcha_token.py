"""Tests for the HMAC signer and the token wire format."""

import hashlib
import hmac

import pytest

from bengyixia.services.captcha_token import ChallengeToken, commitment_payload, parse_token
from bengyixia.services.signing import HmacSigner

SIGNATURE = "ab" * 32


class TestHmacSigner:
    def test_sign_matches_stdlib_hmac(self):
        signer = HmacSigner("secret")
        expected = hmac.new(b"secret", b"1700000000000:8", hashlib.sha256).hexdigest()

        assert signer.sign("1700000000000:8") == expected

    def test_bytes_and_str_secrets_agree(self):
        assert HmacSigner("secret").sign("x") == HmacSigner(b"secret").sign("x")

    def test_matches(self):
        signer = HmacSigner("secret")
        signature = signer.sign("payload")

        assert signer.matches("payload", signature) is True
        assert signer.matches("payload2", signature) is False

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            HmacSigner("")


class TestTokenCodec:
    def test_commitment_payload(self):
        assert commitment_payload(1700000000000, 8) == "1700000000000:8"
        assert commitment_payload(1700000000000, "08") == "1700000000000:08"

    def test_serialize(self):
        token = ChallengeToken(issued_at_ms=1700000000000, signature=SIGNATURE)
        assert token.serialize() == f"1700000000000.{SIGNATURE}"

    def test_parse_valid(self):
        parsed = parse_token(f"1700000000000.{SIGNATURE}")
        assert parsed == ChallengeToken(issued_at_ms=1700000000000, signature=SIGNATURE)

    def test_parse_zero_timestamp(self):
        assert parse_token(f"0.{SIGNATURE}").issued_at_ms == 0

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "no-separator",
            f"1700000000000{SIGNATURE}",
            f".{SIGNATURE}",
            f"1700000000000.{SIGNATURE[:-1]}",
            f"1700000000000.{SIGNATURE}0",
            f"1700000000000.{SIGNATURE.upper()}",
            f" 1700000000000.{SIGNATURE}",
            f"+1700000000000.{SIGNATURE}",
            f"1_700_000.{SIGNATURE}",
            f"01700000000000.{SIGNATURE}",
            f"1.5.{SIGNATURE}",
            f"99999999999999999.{SIGNATURE}",
        ],
    )
    def test_parse_rejects(self, raw):
        assert parse_token(raw) is None
