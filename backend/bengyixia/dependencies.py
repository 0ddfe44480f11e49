from functools import lru_cache

from fastapi import Depends

from bengyixia.config import settings
from bengyixia.exceptions import CaptchaVerificationError
from bengyixia.schemas.captcha import CaptchaProof
from bengyixia.services.captcha_service import CaptchaService


@lru_cache
def get_captcha_service() -> CaptchaService:
    """Process-wide captcha service built from settings."""
    return CaptchaService(
        settings.captcha_secret,
        ttl_seconds=settings.captcha_ttl_seconds,
        svg_options={
            "width": settings.captcha_width,
            "height": settings.captcha_height,
            "line_count": settings.captcha_noise_lines,
            "dot_count": settings.captcha_noise_dots,
        },
    )


def ensure_valid_captcha(
    service: CaptchaService, captcha_id: str | None, captcha_answer: str | None
) -> None:
    """Authoritative captcha check for form submissions."""
    if not service.verify(captcha_id, captcha_answer):
        raise CaptchaVerificationError()


def require_captcha(
    proof: CaptchaProof,
    service: CaptchaService = Depends(get_captcha_service),
) -> CaptchaProof:
    """
    Dependency for login and registration handlers.

    Reads captcha_id / captcha_answer from the request body and raises
    CaptchaVerificationError (HTTP 400) when they do not check out. Handlers
    with their own body model should subclass CaptchaProof and call
    ensure_valid_captcha instead, since FastAPI embeds multiple body params.
    """
    ensure_valid_captcha(service, proof.captcha_id, proof.captcha_answer)
    return proof
