from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from .backend import BackendClient
from ..entities import AnalysisResult, ImageUpload, ReportCategory, Rewards, RiskLevel
from ..exceptions import InvalidImageError, ReportSubmissionError, UpstreamError
from ..normalization import FieldMapping, as_int, as_str_tuple, normalize
from .prediction import DEFAULT_RECOMMENDATIONS, as_fraction, parse_risk_level


ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpg", "image/jpeg", "image/gif", "image/webp"})
MAX_IMAGE_SIZE = 16 * 1024 * 1024

ANALYSIS_DESCRIPTION = "Image analysis request"
UNKNOWN_LOCATION = "Unknown Location"

# Checked in this order; negative phrases first so "not_breeding" is not read
# as "breeding".
CATEGORY_VOCABULARY = (
    (ReportCategory.NOT_HOTSPOT, ("low_risk", "not_breeding", "not_hotspot", "not hotspot", "clean", "safe")),
    (ReportCategory.HOTSPOT, ("breeding", "high_risk", "critical", "hotspot")),
    (ReportCategory.POTENTIAL, ("medium_risk", "potential")),
    (ReportCategory.INVALID, ("invalid",)),
)

CATEGORY_RISK = {
    ReportCategory.HOTSPOT: RiskLevel.CRITICAL,
    ReportCategory.POTENTIAL: RiskLevel.HIGH,
    ReportCategory.NOT_HOTSPOT: RiskLevel.LOW,
    ReportCategory.INVALID: RiskLevel.LOW,
}

REPORT_FIELDS = (
    FieldMapping("classification", ("ai_classification", "classification.category", "category"), "breeding_site"),
    FieldMapping("confidence", ("confidence", "classification.confidence"), 0.0, as_fraction),
    FieldMapping("risk_level", ("risk_level", "classification.risk_level"), None, parse_risk_level),
    FieldMapping("recommendations", ("recommendations", "ai_analysis.recommendations"), DEFAULT_RECOMMENDATIONS, as_str_tuple),
    FieldMapping("features", ("detailed_analysis.features", "ai_analysis.feature_analysis"), (), as_str_tuple),
    FieldMapping("points", ("points_earned", "points_awarded", "gamification.points_awarded"), 50, as_int),
    FieldMapping("xp", ("xp_earned", "xp_gained", "gamification.xp_gained"), 25, as_int),
    FieldMapping("achievement", ("achievement_unlocked", "gamification.achievement_unlocked"), None),
    FieldMapping("level_up", ("level_up", "gamification.level_up"), False),
    FieldMapping("report_id", ("report_id", "image_id"), None),
    FieldMapping("weather_snapshot", ("weather_data",), None),
)


def normalize_category(value: Optional[str]) -> ReportCategory:
    """Map a backend classification string onto a dashboard category.

    Unrecognized strings count as hotspots.
    """
    text = (value or "").lower()
    for category, vocabulary in CATEGORY_VOCABULARY:
        if any(word in text for word in vocabulary):
            return category
    return ReportCategory.HOTSPOT


def validate_image(image: ImageUpload) -> None:
    if image.content_type.lower() not in ALLOWED_IMAGE_TYPES:
        raise InvalidImageError("Invalid file type. Please upload PNG, JPG, JPEG, GIF, or WebP images.")
    if image.size > MAX_IMAGE_SIZE:
        raise InvalidImageError("File too large. Please upload an image smaller than 16MB.")


class ReportClient(BackendClient):
    """Submit citizen reports and normalize the backend's classification."""

    name = "report"
    report_path = "/api/v1/report"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        now_func: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
        **kwargs,
    ) -> None:
        super().__init__(base_url, **kwargs)
        self._now = now_func

    def submit_report(
        self,
        location: str,
        description: str,
        image: Optional[ImageUpload] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        contact: Optional[str] = None,
    ) -> AnalysisResult:
        """Post a report and return the normalized analysis.

        Raises :class:`ReportSubmissionError` when the backend does not
        acknowledge the report; there is no simulated substitute.
        """
        if image is not None:
            validate_image(image)
        data: Dict[str, str] = {"location": location, "description": description}
        if latitude is not None:
            data["latitude"] = str(latitude)
        if longitude is not None:
            data["longitude"] = str(longitude)
        if contact:
            data["reporter_contact"] = contact
        # Every field goes in as a multipart part, with or without an image.
        files: Dict[str, Any] = {key: (None, value) for key, value in data.items()}
        if image is not None:
            files["image"] = (image.filename, image.content, image.content_type)

        try:
            response = self._request("POST", self.url(self.report_path), files=files)
            body = self._json(response)
        except UpstreamError as exc:
            self._record_error()
            raise ReportSubmissionError(self._failure_message(exc), status_code=exc.status_code) from exc
        if not isinstance(body, Mapping):
            raise ReportSubmissionError("Report submission failed: unexpected response", status_code=response.status_code)
        self._log.info("Report for %s accepted", location)
        return self.from_backend(body)

    def analyze_image(self, image: ImageUpload, location: Optional[str] = None) -> AnalysisResult:
        return self.submit_report(location or UNKNOWN_LOCATION, ANALYSIS_DESCRIPTION, image)

    def from_backend(self, body: Mapping[str, Any]) -> AnalysisResult:
        fields = normalize(body, REPORT_FIELDS)
        raw_category = str(fields["classification"])
        category = normalize_category(raw_category)
        timestamp = self._now()
        report_id = fields["report_id"] or f"report_{int(timestamp.timestamp() * 1000)}"
        snapshot = fields["weather_snapshot"]
        return AnalysisResult(
            category=category,
            confidence=fields["confidence"],
            risk_level=fields["risk_level"] or CATEGORY_RISK[category],
            recommendations=tuple(fields["recommendations"]),
            rewards=Rewards(
                points=fields["points"],
                xp=fields["xp"],
                achievement=fields["achievement"],
                level_up=bool(fields["level_up"]),
            ),
            timestamp=self._parse_timestamp(body.get("timestamp")) or timestamp,
            report_id=str(report_id),
            description=raw_category,
            features=tuple(fields["features"]),
            weather_snapshot=dict(snapshot) if isinstance(snapshot, Mapping) else None,
        )

    @staticmethod
    def _failure_message(exc: UpstreamError) -> str:
        return f"Report submission failed: {exc.detail or exc}"

    @staticmethod
    def _parse_timestamp(value: Any) -> Optional[datetime]:
        if not isinstance(value, str) or not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "MAX_IMAGE_SIZE",
    "ReportClient",
    "normalize_category",
    "validate_image",
]
