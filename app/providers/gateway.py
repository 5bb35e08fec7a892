"""
app/providers/gateway.py

Uniform, failure-contained call contract over all external data providers.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from app.domain.comparison import Failed, Ok, ProviderResult, RequestContext
from app.logging_utils import log_event
from app.providers.base import ProviderRequestError, ProviderTimeoutError

logger = logging.getLogger(__name__)

ProviderFetcher = Callable[[str], Mapping[str, Any]]


class ProviderGateway:
    """
    Wraps provider callables so every outcome is an ``Ok`` or ``Failed`` value.

    No retries happen here; a provider's own client owns its retry and
    timeout policy. Fetches issued through ``fetch_many`` run concurrently
    and never cancel each other.
    """

    def __init__(
        self,
        providers: Mapping[str, ProviderFetcher] | None = None,
        *,
        max_workers: int = 8,
    ) -> None:
        self._providers: dict[str, ProviderFetcher] = dict(providers or {})
        self._max_workers = max(1, max_workers)

    def fetch(
        self,
        provider_name: str,
        target: str,
        *,
        context: RequestContext | None = None,
    ) -> ProviderResult:
        """
        Call one provider and tag the outcome; never raises.
        """

        request_id = context.request_id if context else None
        fetcher = self._providers.get(provider_name)
        if fetcher is None:
            return Failed("provider not configured")

        started = time.monotonic()
        try:
            payload = fetcher(target)
        except (ProviderTimeoutError, requests.Timeout):
            result: ProviderResult = Failed("timeout")
        except ProviderRequestError as exc:
            result = Failed(str(exc) or type(exc).__name__)
        except Exception as exc:
            logger.exception("Unexpected provider error provider=%s target=%s", provider_name, target)
            result = Failed(f"{type(exc).__name__}: {exc}")
        else:
            if isinstance(payload, Mapping):
                result = Ok(dict(payload))
            else:
                result = Failed("malformed response")

        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        if isinstance(result, Ok):
            log_event(
                logger,
                logging.INFO,
                "provider_fetched",
                request_id=request_id,
                provider=provider_name,
                target=target,
                elapsed_ms=elapsed_ms,
            )
        else:
            log_event(
                logger,
                logging.WARNING,
                "provider_failed",
                request_id=request_id,
                provider=provider_name,
                target=target,
                reason=result.reason,
                elapsed_ms=elapsed_ms,
            )
        return result

    def fetch_many(
        self,
        calls: Mapping[str, str],
        *,
        context: RequestContext | None = None,
    ) -> dict[str, ProviderResult]:
        """
        Fetch ``{provider_name: target}`` concurrently and wait for all of them.
        """

        if not calls:
            return {}
        if len(calls) == 1:
            ((name, target),) = calls.items()
            return {name: self.fetch(name, target, context=context)}

        workers = min(self._max_workers, len(calls))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="provider") as executor:
            futures = {
                name: executor.submit(self.fetch, name, target, context=context)
                for name, target in calls.items()
            }
            return {name: future.result() for name, future in futures.items()}
