"""Blocking JSON-over-HTTP helper shared by the upstream adapters."""

from typing import Any
from urllib.parse import urlsplit

import requests

from ..errors import RateLimited
from ..logger import get_logger
from ..retry import HTTP_TOO_MANY_REQUESTS

logger = get_logger(__name__)


class HttpJsonClient:
    """Thin wrapper over a requests session that returns decoded JSON.

    HTTP 429 is raised as ``RateLimited`` so the retry policy can recognize
    it; other 4xx/5xx responses raise ``requests.HTTPError`` naming only the host.
    """

    def __init__(self, timeout: float = 15.0, session: requests.Session | None = None):
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def session(self) -> requests.Session:
        return self._session

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self._session.get(url, params=params, timeout=self._timeout)
        return self._decode(response)

    def post_json(self, url: str, payload: Any) -> Any:
        response = self._session.post(url, json=payload, timeout=self._timeout)
        return self._decode(response)

    def close(self) -> None:
        self._session.close()

    def _decode(self, response: requests.Response) -> Any:
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            retry_after = response.headers.get("Retry-After")
            logger.debug("HTTP 429 from %s (Retry-After=%s)", _host(response), retry_after)
            raise RateLimited(f"Rate limited by {_host(response)}")
        if response.status_code >= 400:
            # raise_for_status would put the full URL, credentials included, in the message
            raise requests.HTTPError(
                f"HTTP {response.status_code} from {_host(response)}", response=response
            )
        return response.json()


def _host(response: requests.Response) -> str:
    """Host part of the request URL; paths and queries may embed API keys."""
    return urlsplit(response.url or "").hostname or "unknown host"
