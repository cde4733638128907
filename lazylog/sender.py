"""Blocking JSON POST to the remote collector."""

import logging
from dataclasses import dataclass

import httpx

from lazylog.task import encode_payload

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class SendOutcome:
    delivered: bool
    status_code: int | None = None
    error: str | None = None


def post_json(url: str, body: bytes, timeout: float) -> SendOutcome:
    """POST *body* once with a bounded timeout. The response body is not inspected."""
    try:
        response = httpx.post(url, content=body, headers=JSON_HEADERS, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
        logger.warning("POST to %s failed: %s", url, e)
        return SendOutcome(delivered=False, error=str(e) or type(e).__name__)
    return SendOutcome(delivered=True, status_code=response.status_code)


class SyncSender:
    """Synchronous path: blocks the caller for at most ``timeout`` seconds."""

    def __init__(self, timeout: float = 5):
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    def post(self, payload, url: str) -> SendOutcome:
        try:
            body = encode_payload(payload)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Could not serialize payload for %s: %s", url, e)
            return SendOutcome(delivered=False, error=f"serialize: {e}")
        return post_json(url, body, self._timeout)
