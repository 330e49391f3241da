"""Restart the app service and confirm it answers HTTP."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from stackboot.exceptions import LivenessCheckFailed
from stackboot.runner import StageContext

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class LivenessResult:
    healthy: bool
    status_code: Optional[int] = None
    location: str = ""
    detail: str = ""

    @property
    def redirects_to_login(self) -> bool:
        return LOGIN_PATH in self.location


def classify_response(response: httpx.Response) -> LivenessResult:
    """2xx and 3xx mean the app is serving; 4xx and 5xx do not.

    An unauthenticated request to the root is expected to redirect to the
    login page.
    """
    location = response.headers.get("location", "")
    code = response.status_code
    if code < 400:
        return LivenessResult(True, code, location)
    return LivenessResult(False, code, location, f"HTTP {code}")


def check_liveness(
    url: str,
    *,
    attempts: int = 5,
    timeout: float = 10.0,
    backoff_max: float = 30.0,
    client: Optional[httpx.Client] = None,
) -> LivenessResult:
    """GET *url* without following redirects, retrying transport errors.

    The app needs a moment to boot after a restart, so connection errors are
    retried with exponential backoff. HTTP error statuses are not retried.
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=timeout, follow_redirects=False)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=1, min=1, max=backoff_max),
        reraise=True,
    )
    def _get() -> httpx.Response:
        return client.get(url, follow_redirects=False)

    try:
        response = _get()
    except httpx.TransportError as e:
        logger.warning("liveness probe to %s failed: %s", url, e)
        return LivenessResult(False, detail=f"{type(e).__name__}: {e}")
    finally:
        if owns_client:
            client.close()

    result = classify_response(response)
    logger.info("liveness probe %s -> %s %s", url, result.status_code, result.location)
    return result


def restart_and_verify(ctx: StageContext, client: Optional[httpx.Client] = None) -> LivenessResult:
    settings = ctx.settings
    ctx.run_checked(ctx.compose("restart", settings.app_service), "Restarting app container...")
    with ctx.console.spinner(f"Checking {settings.verify_url} ..."):
        result = check_liveness(
            settings.verify_url,
            attempts=settings.verify_attempts,
            timeout=settings.verify_timeout,
            backoff_max=settings.verify_backoff_max,
            client=client,
        )
    if not result.healthy:
        raise LivenessCheckFailed(f"{settings.verify_url} is not responding ({result.detail})")
    if result.redirects_to_login:
        ctx.console.success(f"{settings.verify_url} is up (redirects to login)")
    else:
        ctx.console.success(f"{settings.verify_url} is up (HTTP {result.status_code})")
    return result
