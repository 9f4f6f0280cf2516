from __future__ import annotations

from typing import Any, Dict, Optional

from ..exceptions import BackendError, UpstreamError
from ..health import HealthRegistry
from ..http import HTTPClient, join_url
from ..outcome import attempt


FALLBACK_HEALTH = {
    "status": "Backend connection failed",
    "service": "Fallback mode - Using simulated data",
}


class BackendClient(HTTPClient):
    """Shared plumbing for the dengue AI backend."""

    name = "backend"
    base_url = "http://localhost:8002"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        registry: Optional[HealthRegistry] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.registry = registry

    def url(self, path: str) -> str:
        return join_url(self.base_url, path)

    # Liveness -----------------------------------------------------------
    def probe(self) -> Dict[str, Any]:
        """Call ``/health``; raises :class:`UpstreamError` unless it answers a JSON object."""
        response = self._request("GET", self.url("/health"))
        body = self._json(response)
        if not isinstance(body, dict):
            raise UpstreamError("malformed health payload", status_code=response.status_code)
        return body

    def health_check(self) -> Dict[str, Any]:
        try:
            return self.probe()
        except UpstreamError as exc:
            self._log.warning("Health check failed: %s", exc)
            self._record_error()
            return dict(FALLBACK_HEALTH)

    def is_alive(self) -> bool:
        return attempt(self.probe, label="health probe").ok

    # Dashboard reads ----------------------------------------------------
    def get_dashboard(self) -> Dict[str, Any]:
        return self._read("/api/v1/dashboard", "dashboard data")

    def get_heatmap(self) -> Dict[str, Any]:
        return self._read("/api/v1/heatmap", "heatmap data")

    def get_model_info(self) -> Dict[str, Any]:
        return self._read("/api/model-info", "model info")

    # Helpers ------------------------------------------------------------
    def _read(self, path: str, what: str) -> Dict[str, Any]:
        try:
            response = self._request("GET", self.url(path))
            body = self._json(response)
        except UpstreamError as exc:
            self._record_error()
            message = exc.detail or str(exc)
            raise BackendError(f"Failed to get {what}: {message}", status_code=exc.status_code) from exc
        if not isinstance(body, dict):
            raise BackendError(f"Failed to get {what}: unexpected payload")
        return body

    def _record_error(self) -> None:
        if self.registry is not None:
            self.registry.record_upstream_error(self.name)


__all__ = ["BackendClient", "FALLBACK_HEALTH"]
