"""
HTTP client for the key/value API.

Mirrors the calls the web front-end makes: list, search, get, set (POST),
update (PUT) and delete. Non-2xx responses are raised as the same exception
types the server uses, so callers can catch ``KeyNotFoundError`` and friends
on either side of the wire.

GET requests are idempotent and are retried on transport errors.
"""

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from storage.exceptions import KeyNotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 10  # seconds
RETRY_ATTEMPTS = 3
RETRY_DELAY = 0.5  # seconds


class KVClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _detail(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict) and "detail" in payload:
            return str(payload["detail"])
        return str(payload)

    def _check(self, response: requests.Response) -> requests.Response:
        """Raise the matching API error for a non-2xx response."""
        if response.ok:
            return response

        detail = self._detail(response)
        if response.status_code == 404:
            raise KeyNotFoundError(detail)
        if response.status_code in (400, 405):
            raise ValidationError(detail)
        raise StoreError(f"{response.status_code}: {detail}")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = self._url(path)
        for attempt in range(RETRY_ATTEMPTS):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(f"GET {url} failed on attempt {attempt + 1}: {e}")
                if attempt < RETRY_ATTEMPTS - 1:
                    time.sleep(RETRY_DELAY)
                    continue
                raise StoreError(f"GET {url} failed after {RETRY_ATTEMPTS} attempts: {e}") from e
            return self._check(response)

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise StoreError(f"{method} {url} failed: {e}") from e
        return self._check(response)

    def set(self, key: str, value: str) -> str:
        """Create or overwrite a key. Returns the server's confirmation text."""
        return self._send("POST", "/set", json={"key": key, "value": value}).text

    def update(self, key: str, value: str) -> str:
        """Overwrite a key through ``PUT /set/<key>``."""
        return self._send("PUT", f"/set/{quote(key, safe='')}", json={"key": key, "value": value}).text

    def get(self, key: str) -> bytes:
        """Return the raw value bytes for ``key``."""
        return self._get(f"/get/{quote(key, safe='')}").content

    def delete(self, key: str) -> str:
        return self._send("DELETE", f"/delete/{quote(key, safe='')}").text

    def list(self, page: int = 1, page_size: int = 10) -> Dict[str, Any]:
        """Return one page of all entries: ``{"items", "page", "page_size", "total"}``."""
        return self._get("/list", params={"page": page, "page_size": page_size}).json()

    def search(self, keyword: str, page: int = 1, page_size: int = 10) -> Dict[str, Any]:
        """Return one page of entries whose key contains ``keyword``."""
        params = {"keyword": keyword, "page": page, "page_size": page_size}
        return self._get("/search", params=params).json()
