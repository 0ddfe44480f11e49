import structlog
from fastapi import APIRouter, Depends, Request, Response

from bengyixia.config import settings
from bengyixia.dependencies import get_captcha_service
from bengyixia.middleware.rate_limit import limiter
from bengyixia.schemas.captcha import (
    CaptchaResponse,
    CaptchaVerifyRequest,
    CaptchaVerifyResponse,
)
from bengyixia.services.captcha_service import CaptchaService

router = APIRouter()
logger = structlog.get_logger()


@router.get("/captcha", response_model=CaptchaResponse)
@limiter.limit(settings.rate_limit_captcha_issue)
async def issue_captcha(
    request: Request,
    response: Response,
    service: CaptchaService = Depends(get_captcha_service),
):
    """
    Issue a new arithmetic captcha.

    The id is a signed token; the answer is not stored anywhere.
    """
    issued = service.issue_challenge()
    response.headers["Cache-Control"] = "no-store"
    return CaptchaResponse(id=issued.token, svg=issued.svg)


@router.post("/captcha/verify", response_model=CaptchaVerifyResponse)
@limiter.limit(settings.rate_limit_captcha_verify)
async def verify_captcha(
    request: Request,
    body: CaptchaVerifyRequest,
    service: CaptchaService = Depends(get_captcha_service),
):
    """
    Check an answer without consuming the captcha.

    Used for live form feedback; the login/registration submit re-checks it.
    """
    valid = service.verify(body.id, body.answer)
    logger.info("captcha_verified", valid=valid)
    return CaptchaVerifyResponse(valid=valid)
