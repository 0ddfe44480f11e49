"""Tests for configuration and startup checks."""

import pytest
from pydantic import ValidationError
from starlette.requests import Request

from bengyixia.config import FALLBACK_CAPTCHA_SECRET, Settings, settings
from bengyixia.dependencies import get_captcha_service
from bengyixia.main import check_captcha_secret
from bengyixia.middleware.rate_limit import get_real_client_ip


class TestCaptchaSecretCheck:
    """check_captcha_secret() guards production deployments."""

    def test_production_with_fallback_secret_refuses_to_start(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "captcha_secret", FALLBACK_CAPTCHA_SECRET)

        with pytest.raises(RuntimeError) as exc_info:
            check_captcha_secret()

        assert "CAPTCHA_SECRET" in str(exc_info.value)

    def test_production_with_own_secret_starts(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "captcha_secret", "a-real-deployment-secret")

        check_captcha_secret()

    def test_development_with_fallback_secret_only_warns(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "development")
        monkeypatch.setattr(settings, "captcha_secret", FALLBACK_CAPTCHA_SECRET)

        check_captcha_secret()


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CAPTCHA_SECRET", raising=False)
        monkeypatch.delenv("CAPTCHA_TTL_SECONDS", raising=False)
        s = Settings(_env_file=None)

        assert s.captcha_ttl_seconds == 300
        assert s.uses_fallback_secret is True

    def test_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("CAPTCHA_SECRET", "from-env")
        s = Settings(_env_file=None)

        assert s.captcha_secret == "from-env"
        assert s.uses_fallback_secret is False

    def test_cors_origins_from_comma_separated_string(self):
        s = Settings(_env_file=None, cors_origins="https://a.example, https://b.example,")
        assert s.cors_origins == ["https://a.example", "https://b.example"]

    @pytest.mark.parametrize("ttl", [0, -1, 3601])
    def test_ttl_bounds(self, ttl):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, captcha_ttl_seconds=ttl)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, captcha_secret="")


class TestCaptchaServiceDependency:
    def test_built_from_settings_and_shared(self):
        get_captcha_service.cache_clear()
        try:
            service = get_captcha_service()
            assert service is get_captcha_service()
            assert service.ttl_ms == settings.captcha_ttl_seconds * 1000
        finally:
            get_captcha_service.cache_clear()


def make_request(headers=None, client=("10.0.0.9", 1234)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestClientIp:
    def test_first_forwarded_hop(self):
        request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert get_real_client_ip(request) == "203.0.113.5"

    def test_falls_back_to_peer(self):
        assert get_real_client_ip(make_request()) == "10.0.0.9"

    def test_empty_forwarded_header_falls_back_to_peer(self):
        assert get_real_client_ip(make_request({"X-Forwarded-For": " "})) == "10.0.0.9"

    def test_unknown_without_client(self):
        assert get_real_client_ip(make_request(client=None)) == "unknown"
