"""Ledger gateway HTTP client.

Posts GraphQL queries to the gateway's `/graphql` endpoint and downloads raw
entry payloads, with retry/backoff on transient failures.
"""

from __future__ import annotations

import random
import time
from typing import Any, Mapping, Optional

import requests

from WeaveQuery.core.errors import GatewayError
from WeaveQuery.utils.log import log

DEFAULT_GATEWAY = "https://arweave.net"
DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 1.0
MAX_SLEEP = 15.0
TOO_MANY_REQUESTS_BASE_PAUSE = 5.0
TOO_MANY_REQUESTS_MAX_SLEEP = 60.0

RETRYABLE_STATUS = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": "weave-query/0.1",
    "Accept": "application/json",
}


class GatewayClient:
    """Low-level HTTP client for a ledger gateway.

    Responsible only for making network requests and returning the decoded
    `data` member of GraphQL responses, or raw payload bytes. Query building
    and result mapping are handled elsewhere.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_GATEWAY,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        api_key: str = "",
    ) -> None:
        """Initialize the client with a reusable HTTP session.

        Args:
            base_url: Gateway root URL, e.g. https://arweave.net.
            timeout: Request timeout in seconds.
            max_attempts: Attempts per request, including the first one.
            api_key: Optional bearer token for gateways that require one.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self._session = requests.Session()
        self._session.headers.update(HEADERS)
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def close(self) -> None:
        """Close the underlying HTTP session and release pooled connections."""
        self._session.close()

    def __enter__(self) -> GatewayClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def post_query(self, query: str) -> Optional[Mapping[str, Any]]:
        """Run a GraphQL query.

        Args:
            query: GraphQL query text.

        Returns:
            The `data` member of the response, or None when it is missing.

        Raises:
            GatewayError: On transport failures, non-success status codes or a
                body that is not JSON.
        """
        url = f"{self.base_url}/graphql"
        log.debug("Gateway query to %s:\n%s", url, query)
        resp = self._request_with_retry("POST", url, json={"query": query})

        try:
            payload = resp.json()
        except ValueError as e:
            raise GatewayError(f"Gateway returned a non-JSON body: {e}", status_code=resp.status_code) from e

        if not isinstance(payload, Mapping):
            raise GatewayError("Gateway returned an unexpected payload", status_code=resp.status_code)

        errors = payload.get("errors")
        if errors:
            log.warning("Gateway reported GraphQL errors: %s", errors)

        data = payload.get("data")
        log.debug("Gateway returned: %s", data)
        return data if isinstance(data, Mapping) else None

    def fetch_data(self, entry_id: str) -> bytes:
        """Download the raw payload of an entry.

        Args:
            entry_id: Transaction id.

        Returns:
            Payload bytes.

        Raises:
            GatewayError: When the payload cannot be downloaded.
        """
        url = f"{self.base_url}/{entry_id}"
        log.debug("Gateway payload fetch: %s", url)
        return self._request_with_retry("GET", url).content

    def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """Issue a request with retry/backoff.

        Retries on timeouts/connection errors and selected HTTP status codes.

        Raises:
            GatewayError: Last observed error when all attempts failed, or a
                non-retryable HTTP status.
        """
        last_err: Exception | None = None
        last_status_code: int | None = None

        for attempt in range(1, self.max_attempts + 1):
            last_status_code = None
            try:
                log.debug("Gateway %s attempt %d/%d to %s", method, attempt, self.max_attempts, url)
                resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
                if resp.status_code in RETRYABLE_STATUS:
                    raise requests.exceptions.HTTPError(f"HTTP {resp.status_code}", response=resp)
                resp.raise_for_status()
                return resp
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                last_err = e
            except requests.exceptions.HTTPError as e:
                last_err = e
                st = getattr(e.response, "status_code", None)
                last_status_code = st if isinstance(st, int) else None
                if st not in RETRYABLE_STATUS:
                    break
            except requests.exceptions.RequestException as e:
                last_err = e
                break

            if attempt < self.max_attempts:
                log.debug("Gateway retrying after attempt %d (error=%s)", attempt, last_err)
                self._sleep_backoff(attempt, status_code=last_status_code)

        assert last_err is not None
        raise GatewayError(f"Gateway request failed: {last_err}", status_code=last_status_code) from last_err

    @staticmethod
    def _sleep_backoff(attempt: int, *, status_code: int | None = None) -> None:
        """Sleep with status-aware backoff.

        Args:
            attempt: Current attempt index (1-based).
            status_code: Last HTTP status code when available.
        """
        if status_code == 429:
            delay = min(TOO_MANY_REQUESTS_BASE_PAUSE * (2 ** (attempt - 1)), TOO_MANY_REQUESTS_MAX_SLEEP)
            time.sleep(delay)
            return

        delay = min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.5), MAX_SLEEP)
        time.sleep(delay)
