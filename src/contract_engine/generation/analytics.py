"""Analytics inputs consumed when building optimization prompts."""

from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field


class PainPoint(BaseModel):
    """A detected UX problem (rage clicks, form abandonment, ...)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str
    severity: Literal["low", "medium", "high"] = "medium"
    message: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class AnalyticsSummary(BaseModel):
    """Pre-aggregated usage analytics for one user's authenticated pages."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    total_events: int = Field(default=0, alias="totalEvents")
    event_type_distribution: dict[str, int] = Field(default_factory=dict, alias="eventTypeDistribution")
    error_rate: float = Field(default=0.0, alias="errorRate")
    pain_points: list[PainPoint] = Field(default_factory=list, alias="painPoints")
    usage_stats: dict[str, Any] = Field(default_factory=dict, alias="usageStats")

    def prompt_payload(self) -> dict[str, Any]:
        """Summary without pain points, using the platform's field names."""
        return self.model_dump(by_alias=True, exclude={"pain_points"})

    def prompt_pain_points(self) -> list[dict[str, Any]]:
        return [p.model_dump() for p in self.pain_points]


class AnalyticsProvider(Protocol):
    """Aggregates tracked events for a user, restricted to the given pages."""

    def aggregate(self, user_id: str, allowed_pages: set[str]) -> AnalyticsSummary: ...
