from bengyixia.schemas.captcha import (
    CaptchaProof,
    CaptchaResponse,
    CaptchaVerifyRequest,
    CaptchaVerifyResponse,
)

__all__ = [
    "CaptchaProof",
    "CaptchaResponse",
    "CaptchaVerifyRequest",
    "CaptchaVerifyResponse",
]
