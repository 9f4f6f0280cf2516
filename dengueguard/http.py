from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import QuotaExceeded, UpstreamError


logger = logging.getLogger(__name__)


@dataclass
class RequestConfig:
    timeout: float = 8.0
    retries: int = 0
    backoff_factor: float = 0.3
    status_forcelist: Iterable[int] = (429, 500, 502, 503, 504)


class HTTPClient:
    """Base class that adds retry/timeouts for upstream HTTP calls."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        if config.retries > 0:
            retry = Retry(
                total=config.retries,
                backoff_factor=config.backoff_factor,
                status_forcelist=list(config.status_forcelist),
                allowed_methods=["GET"],
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text)
            raise QuotaExceeded("quota exceeded", status_code=429)
        if response.status_code >= 400:
            self._log.error("Upstream returned %s: %s", response.status_code, response.text)
            raise UpstreamError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                detail=error_detail(response),
            )
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request to %s timed out", url, exc_info=exc)
            raise UpstreamError("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request to %s failed", url, exc_info=exc)
            raise UpstreamError("request failed") from exc
        return self._handle_response(response)

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise UpstreamError("invalid json", status_code=response.status_code) from exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def error_detail(response: Response) -> str:
    """Best-effort error message from a failed response.

    Prefers the JSON ``detail`` field, then ``error``, then the HTTP reason.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("detail", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return response.reason or f"HTTP {response.status_code}"


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


__all__ = ["HTTPClient", "RequestConfig", "error_detail", "join_url"]
