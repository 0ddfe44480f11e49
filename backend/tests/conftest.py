import random

import pytest
from fastapi.testclient import TestClient

from bengyixia.dependencies import get_captcha_service
from bengyixia.main import app
from bengyixia.middleware.rate_limit import limiter
from bengyixia.services.captcha_service import CaptchaService
from tests.test_utils import FakeClock

TEST_SECRET = "test-captcha-secret"


@pytest.fixture
def clock():
    """Frozen clock that tests can advance explicitly."""
    return FakeClock()


@pytest.fixture
def captcha_service(clock):
    """Captcha service with a deterministic secret, seeded RNG and fake clock."""
    return CaptchaService(TEST_SECRET, rng=random.Random(1234), clock=clock)


@pytest.fixture
def app_overrides(captcha_service):
    """Point the app at the test captcha service and disable rate limiting."""
    app.dependency_overrides[get_captcha_service] = lambda: captcha_service
    limiter.enabled = False
    yield app
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def client(app_overrides):
    """Test client wired to the test captcha service."""
    with TestClient(app_overrides) as test_client:
        yield test_client
