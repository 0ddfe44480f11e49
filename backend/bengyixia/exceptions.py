class CaptchaVerificationError(Exception):
    """Raised when a form submission carries a missing, expired or wrong captcha."""

    # Single user-facing message; callers must not learn why verification failed
    public_message = "Captcha incorrect"

    def __init__(self) -> None:
        super().__init__(self.public_message)
