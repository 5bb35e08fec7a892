"""
app/providers/base.py

Base provider client abstraction and shared HTTP mechanics.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import requests

from app.config import ProviderEndpointSettings, ProviderHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SiteComparisonBot/1.0)"


class ProviderRequestError(RuntimeError):
    """
    Raised when a provider cannot return usable data.
    """


class ProviderTimeoutError(ProviderRequestError):
    """
    Raised when the last attempt against a provider timed out.
    """


class MissingCredentialError(ProviderRequestError):
    """
    Raised when a provider needs an API key that is not configured.
    """


class BaseProviderClient(ABC):
    """
    Client interface for one external data provider.

    ``fetch`` returns the provider's payload normalized to its declared
    contract, or raises ProviderRequestError. Retries live here; failure
    containment lives in the gateway.
    """

    name: str
    requires_api_key: bool = True

    def __init__(
        self,
        *,
        endpoint: ProviderEndpointSettings,
        http_settings: ProviderHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.name = endpoint.name
        self.endpoint = endpoint
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier

    @abstractmethod
    def fetch(self, target: str) -> dict[str, Any]:
        """
        Fetch and normalize data for a domain or handle.
        """

    def ensure_ready(self) -> None:
        """
        Raise before any network call when the provider cannot be used.
        """

        if not self.endpoint.enabled:
            raise ProviderRequestError("provider disabled")
        if self.requires_api_key and not self.endpoint.api_key:
            raise MissingCredentialError("missing credential")

    def __call__(self, target: str) -> dict[str, Any]:
        self.ensure_ready()
        return self.fetch(target)

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute an HTTP request and return parsed JSON with retry support.
        """

        response = self._request(method=method, url=url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestError(f"{self.name}: response was not valid JSON.") from exc

    def _request_text(
        self,
        *,
        method: str,
        url: str,
        params: Any = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """
        Execute an HTTP request and return response text with retry support.
        """

        response = self._request(method=method, url=url, params=params, headers=headers)
        return response.text

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: Any = None,
        headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request with exponential backoff on transient failures.
        """

        merged_headers = {"User-Agent": DEFAULT_USER_AGENT, **(headers or {})}
        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=merged_headers,
                    timeout=self._timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    # Path discovery hits many 404s; callers decide whether the failure is fatal.
                    logger.log(
                        logging.DEBUG if status_code == 404 else logging.WARNING,
                        "Provider request failed provider=%s status=%s url=%s error=%s",
                        self.name,
                        status_code,
                        url,
                        exc,
                    )
                    raise ProviderRequestError(f"{self.name}: HTTP {status_code}") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except requests.RequestException as exc:
                logger.warning(
                    "Provider request error provider=%s url=%s error=%s",
                    self.name,
                    url,
                    exc,
                )
                raise ProviderRequestError(f"{self.name}: {exc}") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Provider request retry provider=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.name,
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Provider request exhausted retries provider=%s url=%s error=%s",
            self.name,
            url,
            last_error,
        )
        if isinstance(last_error, requests.Timeout):
            raise ProviderTimeoutError("timeout") from last_error
        raise ProviderRequestError(f"{self.name}: request failed after retries.") from last_error

    @staticmethod
    def _as_int(value: Any) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _as_float(value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def _require_mapping(self, payload: Any, *, key: str | None = None) -> dict[str, Any]:
        """
        Return ``payload`` (or ``payload[key]``) as a dict or raise a malformed-response error.
        """

        value = payload.get(key) if key is not None and isinstance(payload, dict) else payload
        if not isinstance(value, dict):
            where = f" field '{key}'" if key else ""
            raise ProviderRequestError(f"{self.name}: malformed response{where}.")
        return value
