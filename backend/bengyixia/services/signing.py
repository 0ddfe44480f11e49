import hashlib
import hmac


class HmacSigner:
    """HMAC-SHA256 signer over a process-wide secret."""

    def __init__(self, secret: str | bytes):
        if not secret:
            raise ValueError("Signing secret must not be empty")
        self._key = secret.encode("utf-8") if isinstance(secret, str) else secret

    def sign(self, message: str) -> str:
        """Return the lowercase hex HMAC-SHA256 digest of message."""
        return hmac.new(self._key, message.encode("utf-8"), hashlib.sha256).hexdigest()

    def matches(self, message: str, signature: str) -> bool:
        """Check signature against a fresh digest of message in constant time."""
        return hmac.compare_digest(self.sign(message), signature)
