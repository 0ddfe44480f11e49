#!/usr/bin/env python3
"""
Smoke test for bengyixia captcha deployments.

Deploy guardrail: fast, stdlib-only, and each failure names the step and
shows the HTTP status/body preview.

Flow (default):
1. Health check
2. Issue a captcha (GET /api/captcha) and check the id/svg shape
3. Solve it from the SVG and verify (POST /api/captcha/verify) -> valid
4. Re-verify the same answer (non-consuming) -> valid
5. Wrong answer and garbage id -> invalid

Usage:
    ./scripts/smoke-test.py https://staging.example.com
    ./scripts/smoke-test.py https://staging.example.com --health-only
"""

import argparse
import json
import random
import re
import sys
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5
MAX_BACKOFF_SECONDS = 4.0
BODY_PREVIEW_CHARS = 500

SVG_TEXT_TAG = "{http://www.w3.org/2000/svg}text"
TOKEN_RE = re.compile(r"^\d+\.[0-9a-f]{64}$")
EXPRESSION_RE = re.compile(r"(\d+) ([+-]) (\d+) = \?")


class ApiError(RuntimeError):
    def __init__(self, status_code: int, body: str):
        super().__init__(f"API error {status_code}: {body[:BODY_PREVIEW_CHARS]}")
        self.status_code = status_code
        self.body = body


def log(msg: str) -> None:
    """Print timestamped log message."""
    print(f"[{datetime.now().strftime('%H:%M:%S')}] {msg}", flush=True)


def _is_retryable_status(status_code: int) -> bool:
    return status_code in {408, 425, 429, 502, 503, 504, 522, 524}


@dataclass
class HttpClient:
    base_url: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS

    def request(
        self, method: str, path: str, *, data: dict[str, Any] | None = None
    ) -> tuple[int, bytes]:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"} if data is not None else {}
        body = json.dumps(data).encode() if data is not None else None

        max_attempts = max(1, self.retries + 1)
        for attempt in range(1, max_attempts + 1):
            try:
                req = Request(url, data=body, headers=headers, method=method)
                try:
                    with urlopen(req, timeout=self.timeout_seconds) as response:
                        return response.getcode(), response.read()
                except HTTPError as e:
                    error_body = e.read() if e.fp else b""
                    if attempt < max_attempts and _is_retryable_status(e.code):
                        self._sleep_backoff(attempt)
                        continue
                    return e.code, error_body
            except (URLError, TimeoutError) as e:
                if attempt < max_attempts:
                    self._sleep_backoff(attempt)
                    continue
                raise RuntimeError(f"Network error after {attempt} attempts: {e}") from e

        raise RuntimeError(f"Exhausted {max_attempts} attempts for {method} {path}")

    def json(self, method: str, path: str, *, data: dict[str, Any] | None = None) -> Any:
        status, body = self.request(method, path, data=data)
        text = body.decode("utf-8", errors="replace")
        if status < 200 or status >= 300:
            raise ApiError(status, text)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise RuntimeError(
                f"Invalid JSON from {method} {path}: {text[:BODY_PREVIEW_CHARS]!r}"
            ) from e

    def _sleep_backoff(self, attempt: int) -> None:
        base = self.retry_backoff_seconds * (2 ** (attempt - 1))
        jitter = random.random() * self.retry_backoff_seconds
        time.sleep(min(MAX_BACKOFF_SECONDS, base + jitter))


def solve_captcha_svg(svg: str) -> int:
    """Read the per-character <text> elements back into the expression and solve it."""
    root = ET.fromstring(svg)
    text = "".join(el.text or "" for el in root.iter(SVG_TEXT_TAG))
    match = EXPRESSION_RE.fullmatch(text)
    if not match:
        raise RuntimeError(f"Unexpected captcha expression: {text!r}")
    left, op, right = int(match.group(1)), match.group(2), int(match.group(3))
    return left + right if op == "+" else left - right


@dataclass
class SmokeContext:
    client: HttpClient
    max_health_attempts: int

    captcha_id: str | None = None
    answer: int | None = None

    def require_captcha(self) -> tuple[str, int]:
        if self.captcha_id is None or self.answer is None:
            raise RuntimeError("Missing captcha (step ordering bug)")
        return self.captcha_id, self.answer


@dataclass(frozen=True)
class Step:
    name: str
    run: Callable[[SmokeContext], None]


def run_steps(ctx: SmokeContext, steps: list[Step]) -> bool:
    overall_start = time.time()
    for step in steps:
        log(f"STEP: {step.name}")
        start = time.time()
        try:
            step.run(ctx)
        except Exception as e:
            log(f"FAIL: {step.name} ({time.time() - start:.2f}s) - {e}")
            return False
        log(f"OK: {step.name} ({time.time() - start:.2f}s)")

    log(f"All steps passed in {time.time() - overall_start:.2f}s")
    return True


def step_health(ctx: SmokeContext) -> None:
    for attempt in range(1, ctx.max_health_attempts + 1):
        try:
            if ctx.client.json("GET", "/health").get("status") == "healthy":
                return
        except (ApiError, RuntimeError) as e:
            log(f"Health attempt {attempt}/{ctx.max_health_attempts} failed: {e}")
        time.sleep(1)
    raise RuntimeError("Health check failed")


def step_issue(ctx: SmokeContext) -> None:
    data = ctx.client.json("GET", "/api/captcha")
    if not TOKEN_RE.match(data.get("id", "")):
        raise RuntimeError(f"Malformed captcha id: {data.get('id')!r}")
    ctx.captcha_id = data["id"]
    ctx.answer = solve_captcha_svg(data["svg"])
    log(f"Issued captcha (svg {len(data['svg'])} bytes)")


def _verify(ctx: SmokeContext, captcha_id: str, answer: str) -> bool:
    return ctx.client.json(
        "POST", "/api/captcha/verify", data={"id": captcha_id, "answer": answer}
    )["valid"]


def step_verify_correct(ctx: SmokeContext) -> None:
    captcha_id, answer = ctx.require_captcha()
    if not _verify(ctx, captcha_id, str(answer)):
        raise RuntimeError("Correct answer was rejected (clock skew or secret mismatch?)")


def step_verify_repeat(ctx: SmokeContext) -> None:
    captcha_id, answer = ctx.require_captcha()
    if not _verify(ctx, captcha_id, str(answer)):
        raise RuntimeError("Second verification of the same captcha was rejected")


def step_verify_rejections(ctx: SmokeContext) -> None:
    captcha_id, answer = ctx.require_captcha()
    if _verify(ctx, captcha_id, str(answer + 1)):
        raise RuntimeError("Wrong answer was accepted")
    if _verify(ctx, "garbage", "5"):
        raise RuntimeError("Garbage captcha id was accepted")


def main() -> int:
    parser = argparse.ArgumentParser(description="bengyixia captcha smoke test")
    parser.add_argument("base_url", help="Base URL (e.g., https://staging.example.com)")
    parser.add_argument(
        "--health-only",
        action="store_true",
        help="Only run health check, skip captcha flow",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"HTTP timeout seconds (default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_RETRIES,
        help=f"Retries for transient failures (default: {DEFAULT_RETRIES})",
    )
    parser.add_argument(
        "--max-health-attempts",
        type=int,
        default=30,
        help="Max health check attempts (default: 30)",
    )
    args = parser.parse_args()

    try:
        client = HttpClient(
            base_url=args.base_url.rstrip("/"), timeout_seconds=args.timeout, retries=args.retries
        )
        ctx = SmokeContext(client=client, max_health_attempts=args.max_health_attempts)

        steps = [Step("health", step_health)]
        if args.health_only:
            log("Health-only mode: skipping captcha flow")
        else:
            steps.extend(
                [
                    Step("issue captcha", step_issue),
                    Step("verify correct answer", step_verify_correct),
                    Step("verify again (non-consuming)", step_verify_repeat),
                    Step("reject wrong answer and garbage id", step_verify_rejections),
                ]
            )

        return 0 if run_steps(ctx, steps) else 1
    except Exception as e:
        log(f"ERROR: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
