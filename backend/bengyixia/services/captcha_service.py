"""
Stateless arithmetic captcha.

The captcha ID handed to the client is a signed commitment to the answer, so
nothing is stored server-side. Verification re-signs whatever the user typed
and compares it with the signature in the token.
"""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from bengyixia.services.captcha_challenge import ArithmeticChallenge, generate_challenge
from bengyixia.services.captcha_render import render_captcha_svg
from bengyixia.services.captcha_token import ChallengeToken, commitment_payload, parse_token
from bengyixia.services.signing import HmacSigner

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 300

# Characters removed around answers: the ECMAScript WhiteSpace and
# LineTerminator sets, so answers trim exactly as they do in the browser
ANSWER_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def epoch_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class IssuedCaptcha:
    token: str
    svg: str
    # In-process only; must never be serialized to clients
    challenge: ArithmeticChallenge = field(repr=False)


class CaptchaService:
    """Issues and verifies captcha challenges without server-side state."""

    def __init__(
        self,
        secret: str | bytes,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        rng: random.Random | None = None,
        clock: Callable[[], int] | None = None,
        svg_options: dict | None = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._signer = HmacSigner(secret)
        self._ttl_ms = ttl_seconds * 1000
        self._rng = rng if rng is not None else random.SystemRandom()
        self._clock = clock or epoch_millis
        self._svg_options = svg_options or {}

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def issue_token(self, answer: int | str, issued_at_ms: int | None = None) -> str:
        """Sign an answer at the given (or current) time and serialize the token."""
        if issued_at_ms is None:
            issued_at_ms = self._clock()
        signature = self._signer.sign(commitment_payload(issued_at_ms, answer))
        return ChallengeToken(issued_at_ms=issued_at_ms, signature=signature).serialize()

    def issue_challenge(self) -> IssuedCaptcha:
        """Generate a new challenge, render it and bind its answer into a token."""
        challenge = generate_challenge(self._rng)
        svg = render_captcha_svg(challenge.expression, self._rng, **self._svg_options)
        token = self.issue_token(challenge.answer)

        logger.info("captcha_issued", operator=challenge.operator)

        return IssuedCaptcha(token=token, svg=svg, challenge=challenge)

    def verify(self, token: str | None, candidate_answer: str | None) -> bool:
        """
        Check a candidate answer against a token.

        Never raises for malformed input; every failure is reported as False.
        The same token can be verified any number of times until it expires.
        """
        if not token or not candidate_answer:
            return self._reject("missing_input")

        parsed = parse_token(token)
        if parsed is None:
            return self._reject("malformed_token")

        age_ms = self._clock() - parsed.issued_at_ms
        if age_ms < 0:
            return self._reject("issued_in_future")
        if age_ms > self._ttl_ms:
            return self._reject("expired")

        answer = candidate_answer.strip(ANSWER_WHITESPACE)
        # Issued answers are plain digits; anything else (lone surrogates
        # included) can neither match nor be UTF-8 encoded for signing
        if not answer.isascii():
            return self._reject("malformed_answer")

        payload = commitment_payload(parsed.issued_at_ms, answer)
        if not self._signer.matches(payload, parsed.signature):
            return self._reject("signature_mismatch")

        return True

    @staticmethod
    def _reject(reason: str) -> bool:
        logger.debug("captcha_rejected", reason=reason)
        return False
