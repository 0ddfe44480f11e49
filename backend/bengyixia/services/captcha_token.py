"""
Captcha token wire format.

A token is ``{issued_at_ms}.{signature}`` where the signature is the hex
HMAC-SHA256 of ``{issued_at_ms}:{answer}``. The answer itself never appears
in the token.
"""

import re
from dataclasses import dataclass

SIGNATURE_HEX_LENGTH = 64

_TIMESTAMP_RE = re.compile(r"[0-9]{1,16}")
_SIGNATURE_RE = re.compile(rf"[0-9a-f]{{{SIGNATURE_HEX_LENGTH}}}")


@dataclass(frozen=True)
class ChallengeToken:
    issued_at_ms: int
    signature: str

    def serialize(self) -> str:
        return f"{self.issued_at_ms}.{self.signature}"


def commitment_payload(issued_at_ms: int, answer: int | str) -> str:
    """Build the message that gets signed for a given timestamp and answer."""
    return f"{issued_at_ms}:{answer}"


def parse_token(raw: str) -> ChallengeToken | None:
    """
    Parse a serialized token.

    Returns None for anything that is not exactly one canonical timestamp,
    a dot, and a 64-char lowercase hex signature.
    """
    timestamp, sep, signature = raw.partition(".")
    if not sep:
        return None

    if not _TIMESTAMP_RE.fullmatch(timestamp):
        return None
    issued_at_ms = int(timestamp)
    # Zero-padded variants would otherwise map onto the same signed payload
    if str(issued_at_ms) != timestamp:
        return None

    if not _SIGNATURE_RE.fullmatch(signature):
        return None

    return ChallengeToken(issued_at_ms=issued_at_ms, signature=signature)
