from pydantic import BaseModel, Field, field_validator


def _coerce_answer(v):
    # Clients sometimes post the answer as a JSON number
    if isinstance(v, bool):
        return None
    # 8.0 becomes "8.0", which never matches an integer answer
    if isinstance(v, (int, float)):
        return str(v)
    return v


class CaptchaResponse(BaseModel):
    id: str = Field(..., description="Signed captcha token")
    svg: str = Field(..., description="Inline SVG markup of the challenge")


class CaptchaVerifyRequest(BaseModel):
    # Missing fields are a failed check, not a validation error
    id: str | None = None
    answer: str | None = None

    @field_validator("answer", mode="before")
    @classmethod
    def stringify_answer(cls, v):
        return _coerce_answer(v)


class CaptchaVerifyResponse(BaseModel):
    valid: bool


class CaptchaProof(BaseModel):
    """Captcha fields embedded in login and registration payloads."""

    captcha_id: str | None = None
    captcha_answer: str | None = None

    @field_validator("captcha_answer", mode="before")
    @classmethod
    def stringify_answer(cls, v):
        return _coerce_answer(v)
