"""
Trend Analysis

Compares batch results over time (oldest first): per-batch period
summaries, overall direction, insights and score projections.

Projections apply an optimistic bias for longer horizons. The bias is a
ProjectionPolicy rather than a constant, and every projection lists it in
its ``assumptions``.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ortb.reporting.models import (
    PerformanceProjection,
    TimePeriodAnalysis,
    TrendAnalysis,
    TrendInsight,
)
from ortb.reporting.scoring import round_half_up
from ortb.validation.models import BatchValidationResult


DIRECTION_THRESHOLD = 5
DIRECTION_INSIGHT_CONFIDENCE = 80
INSUFFICIENT_DATA_CONFIDENCE = 10
TOP_ERRORS_PER_PERIOD = 3


@dataclass(frozen=True)
class HorizonPolicy:
    """Projection settings for one horizon.

    Attributes:
        timeframe: "1week", "1month" or "3months"
        multiplier: Factor applied to the historical average score
        confidence: Confidence (0-100) reported for the projection
        assumptions: Human-readable assumptions behind the multiplier
    """
    timeframe: str
    multiplier: float
    confidence: int
    assumptions: Tuple[str, ...] = ()


def _default_horizons() -> Tuple[HorizonPolicy, ...]:
    return (
        HorizonPolicy(
            timeframe="1week",
            multiplier=1.0,
            confidence=70,
            assumptions=(
                "Current validation patterns continue",
                "No major system changes",
            ),
        ),
        HorizonPolicy(
            timeframe="1month",
            multiplier=1.05,
            confidence=60,
            assumptions=(
                "Optimistic default: average score assumed to improve 5% through learning",
                "Stable request patterns",
            ),
        ),
        HorizonPolicy(
            timeframe="3months",
            multiplier=1.15,
            confidence=40,
            assumptions=(
                "Optimistic default: average score assumed to improve 15% as systematic fixes land",
                "Team learning curve",
            ),
        ),
    )


@dataclass(frozen=True)
class ProjectionPolicy:
    """Horizons and multipliers used for score projections.

    The default nudges longer horizons upward. Pass neutral multipliers
    (all 1.0) to project the historical average unchanged.
    """
    horizons: Tuple[HorizonPolicy, ...] = field(default_factory=_default_horizons)
    max_score: int = 100

    @classmethod
    def neutral(cls) -> "ProjectionPolicy":
        return cls(horizons=tuple(
            HorizonPolicy(
                timeframe=h.timeframe,
                multiplier=1.0,
                confidence=h.confidence,
                assumptions=("Current validation patterns continue",),
            )
            for h in _default_horizons()
        ))

    def project(self, average_score: float) -> List[PerformanceProjection]:
        return [
            PerformanceProjection(
                timeframe=horizon.timeframe,
                projected_compliance_score=min(
                    self.max_score, round_half_up(average_score * horizon.multiplier)
                ),
                confidence=horizon.confidence,
                assumptions=list(horizon.assumptions),
            )
            for horizon in self.horizons
        ]


def analyze_time_periods(batches: Sequence[BatchValidationResult]) -> List[TimePeriodAnalysis]:
    """One period per batch; improvements and regressions compare against the previous batch."""
    periods = []
    previous_codes = None
    for index, batch in enumerate(batches):
        codes = {error.code for result in batch.results for error in result.errors}
        improvements: List[str] = []
        regressions: List[str] = []
        if previous_codes is not None:
            improvements = [f"{code} no longer reported" for code in sorted(previous_codes - codes)]
            regressions = [f"{code} newly reported" for code in sorted(codes - previous_codes)]

        periods.append(TimePeriodAnalysis(
            period=f"Period {index + 1}",
            start_date=batch.timestamp,
            end_date=batch.timestamp,
            batch_id=batch.batch_id,
            total_requests=batch.summary.total_requests,
            average_compliance_score=batch.summary.average_compliance_score,
            top_errors=batch.summary.common_errors[:TOP_ERRORS_PER_PERIOD],
            improvements=improvements,
            regressions=regressions,
        ))
        previous_codes = codes
    return periods


def calculate_trend_direction(batches: Sequence[BatchValidationResult]) -> str:
    if len(batches) < 2:
        return "stable"
    change = (
        batches[-1].summary.average_compliance_score
        - batches[0].summary.average_compliance_score
    )
    if change > DIRECTION_THRESHOLD:
        return "improving"
    if change < -DIRECTION_THRESHOLD:
        return "declining"
    return "stable"


def direction_insight(direction: str) -> TrendInsight:
    if direction == "improving":
        insight_type = "improvement"
    elif direction == "declining":
        insight_type = "regression"
    else:
        insight_type = "pattern"

    return TrendInsight(
        type=insight_type,
        description=f"Overall compliance trend is {direction}",
        impact="high" if direction == "declining" else "medium",
        recommendation=(
            "Focus on addressing recurring validation issues"
            if direction == "declining"
            else "Continue current validation practices"
        ),
        confidence=DIRECTION_INSIGHT_CONFIDENCE,
    )


def generate_trend_analysis(
    batches: Sequence[BatchValidationResult],
    policy: Optional[ProjectionPolicy] = None
) -> TrendAnalysis:
    """Trend analysis across batches, oldest first.

    Fewer than two batches yields a stable direction, a single
    low-confidence insight and no projections.
    """
    policy = policy or ProjectionPolicy()

    if len(batches) < 2:
        return TrendAnalysis(
            time_periods=[],
            trend_direction="stable",
            insights=[TrendInsight(
                type="pattern",
                description="Insufficient historical data for trend analysis",
                impact="low",
                recommendation="Collect more validation data over time to enable trend analysis",
                confidence=INSUFFICIENT_DATA_CONFIDENCE,
            )],
            projections=[],
        )

    direction = calculate_trend_direction(batches)
    average = sum(b.summary.average_compliance_score for b in batches) / len(batches)

    return TrendAnalysis(
        time_periods=analyze_time_periods(batches),
        trend_direction=direction,
        insights=[direction_insight(direction)],
        projections=policy.project(average),
    )
