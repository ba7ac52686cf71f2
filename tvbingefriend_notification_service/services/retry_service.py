"""Retry wrapper for outbound provider calls."""
import logging
import time
from typing import Any, Callable, Mapping

import requests


class ProviderRequestError(RuntimeError):
    """An outbound request failed, possibly after several attempts."""
    def __init__(self,
                 message: str,
                 *,
                 status_code: int | None = None,
                 attempts: int = 1,
                 body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.attempts = attempts
        self.body_snippet = body_snippet


def is_retryable_status(status_code: int) -> bool:
    """Server errors and throttling are retried; other client errors are not."""
    return status_code == 429 or 500 <= status_code < 600


class RetryService:
    """Bounded retry with exponential backoff around a single HTTP call.

    The service keeps no state between calls, so one instance can be shared by
    every thread that talks to a provider.
    """
    def __init__(self,
                 max_retries: int = 3,
                 backoff_base: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        self.max_retries = max(0, max_retries)
        self.backoff_base = backoff_base
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given 0-indexed attempt."""
        return float(self.backoff_base ** attempt)

    def request_json(self,
                     session: requests.Session,
                     method: str,
                     url: str,
                     *,
                     params: Mapping[str, Any] | None = None,
                     json_body: Any = None,
                     timeout: float = 10.0,
                     label: str | None = None) -> Any:
        """Send a request and decode its JSON body, retrying transient failures.

        Args:
            session (requests.Session): Session used for the request
            method (str): HTTP method
            url (str): Request URL
            params (Mapping[str, Any] | None): Query string parameters
            json_body (Any): JSON request body
            timeout (float): Per-attempt timeout in seconds
            label (str | None): Name used in logs and errors instead of the URL

        Returns:
            Any: Decoded JSON payload

        Raises:
            ProviderRequestError: On a client error, a non-JSON body, or once
                all attempts have failed
        """
        target = label or url
        total_attempts = self.max_retries + 1
        last_error = "no attempt made"
        last_status: int | None = None

        for attempt in range(total_attempts):
            try:
                response = session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers={"accept": "application/json"},
                    timeout=timeout,
                )
            except requests.RequestException as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                last_status = None
                logging.warning(
                    f"RetryService.request_json: {target} attempt {attempt + 1}/{total_attempts} failed: {last_error}"
                )
            else:
                status = response.status_code
                if is_retryable_status(status):
                    last_error = f"HTTP {status}"
                    last_status = status
                    logging.warning(
                        f"RetryService.request_json: {target} attempt {attempt + 1}/{total_attempts} "
                        f"returned HTTP {status}"
                    )
                elif status >= 400:
                    raise ProviderRequestError(
                        f"{target} failed with HTTP {status}",
                        status_code=status,
                        attempts=attempt + 1,
                        body_snippet=(response.text or "")[:400],
                    )
                else:
                    try:
                        return response.json()
                    except ValueError as exc:
                        raise ProviderRequestError(
                            f"{target} returned a non-JSON response",
                            status_code=status,
                            attempts=attempt + 1,
                            body_snippet=(response.text or "")[:400],
                        ) from exc

            if attempt < total_attempts - 1:
                self._sleep(self.backoff_delay(attempt))

        raise ProviderRequestError(
            f"{target} failed after {total_attempts} attempts: {last_error}",
            status_code=last_status,
            attempts=total_attempts,
        )

    def get_json(self,
                 session: requests.Session,
                 url: str,
                 *,
                 params: Mapping[str, Any] | None = None,
                 timeout: float = 10.0,
                 label: str | None = None) -> Any:
        """GET shortcut for request_json."""
        return self.request_json(session, "GET", url, params=params, timeout=timeout, label=label)
