"""
Side-by-side comparison of two site snapshots.

``compare`` is pure: the same two snapshots always produce an equal
``Comparison``. Missing data is kept distinct from zero. A metric with
no value on either side has no winner, and a metric present on only one
side is won by that side.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from app.domain.comparison import SiteSnapshot

SUBJECT = "subject"
COMPETITOR = "competitor"
TIE = "tie"

FAMILY_ORDER: tuple[str, ...] = (
    "audit",
    "headings",
    "backlinks",
    "traffic",
    "technology",
    "security",
    "content",
    "social",
    "advertising",
)

RECOMMENDATIONS: dict[str, str] = {
    "audit": "Improve Lighthouse category scores: optimize images, reduce JavaScript and fix accessibility issues.",
    "headings": "Use exactly one H1 and structure content with H2/H3 headings.",
    "backlinks": "Grow referring domains through outreach and linkable content.",
    "traffic": "Invest in organic and referral channels to close the traffic gap.",
    "technology": "Review analytics and framework coverage against the competitor's stack.",
    "security": "Serve everything over HTTPS, remove mixed content and consider a CDN.",
    "content": "Publish more frequently to match the competitor's content cadence.",
    "social": "Grow social audiences on the networks where the competitor leads.",
    "advertising": "Review paid campaigns where the competitor runs more ads.",
}

Number = float | int


@dataclass(frozen=True)
class MetricComparison:
    """
    Subject and competitor values for one metric with its winner.

    ``difference`` is ``subject - competitor`` and is None unless both sides
    have a value.
    """

    subject: Number | None
    competitor: Number | None
    winner: str | None
    difference: Number | None
    higher_is_better: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "competitor": self.competitor,
            "winner": self.winner,
            "difference": self.difference,
            "higher_is_better": self.higher_is_better,
        }


@dataclass(frozen=True)
class FamilyComparison:
    """
    Metrics for one family (``audit``, ``backlinks``, ...) plus the family winner.
    """

    name: str
    metrics: dict[str, MetricComparison]
    winner: str | None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return any(
            metric.subject is not None or metric.competitor is not None
            for metric in self.metrics.values()
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "winner": self.winner,
            "metrics": {name: self.metrics[name].to_dict() for name in sorted(self.metrics)},
            "details": self.details,
        }


@dataclass(frozen=True)
class Comparison:
    families: dict[str, FamilyComparison]
    summary: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            name: self.families[name].to_dict() for name in FAMILY_ORDER if name in self.families
        }
        payload["summary"] = self.summary
        return payload


def compare_metric(
    subject: Any,
    competitor: Any,
    *,
    higher_is_better: bool = True,
) -> MetricComparison:
    subject_value = _number(subject)
    competitor_value = _number(competitor)

    if subject_value is None and competitor_value is None:
        return MetricComparison(None, None, None, None, higher_is_better)
    if competitor_value is None:
        return MetricComparison(subject_value, None, SUBJECT, None, higher_is_better)
    if subject_value is None:
        return MetricComparison(None, competitor_value, COMPETITOR, None, higher_is_better)

    difference = _round(subject_value - competitor_value)
    if subject_value == competitor_value:
        winner = TIE
    elif (subject_value > competitor_value) == higher_is_better:
        winner = SUBJECT
    else:
        winner = COMPETITOR
    return MetricComparison(subject_value, competitor_value, winner, difference, higher_is_better)


def family_winner(metrics: dict[str, MetricComparison]) -> str | None:
    """
    Side winning more of the family's metrics; ties only count when nothing else decides.
    """

    subject_wins = sum(1 for metric in metrics.values() if metric.winner == SUBJECT)
    competitor_wins = sum(1 for metric in metrics.values() if metric.winner == COMPETITOR)
    ties = sum(1 for metric in metrics.values() if metric.winner == TIE)

    if subject_wins > competitor_wins:
        return SUBJECT
    if competitor_wins > subject_wins:
        return COMPETITOR
    if subject_wins or ties:
        return TIE
    return None


class ComparisonEngine:
    """
    Reduces a subject and a competitor snapshot into a ``Comparison``.
    """

    def compare(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> Comparison:
        builders: dict[str, Callable[[SiteSnapshot, SiteSnapshot], FamilyComparison]] = {
            "audit": self._audit,
            "headings": self._headings,
            "backlinks": self._backlinks,
            "traffic": self._traffic,
            "technology": self._technology,
            "security": self._security,
            "content": self._content,
            "social": self._social,
            "advertising": self._advertising,
        }
        families = {name: builders[name](subject, competitor) for name in FAMILY_ORDER}
        return Comparison(families=families, summary=self._summary(families))

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def _audit(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_scores = _get(subject.data("audit"), "category_scores") or {}
        competitor_scores = _get(competitor.data("audit"), "category_scores") or {}
        metrics = {
            category: compare_metric(subject_scores.get(category), competitor_scores.get(category))
            for category in ("performance", "accessibility", "seo", "best_practices")
        }
        metrics["score"] = compare_metric(_mean(subject_scores), _mean(competitor_scores))
        return _family("audit", metrics)

    def _headings(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_headings = _get(subject.data("audit"), "headings")
        competitor_headings = _get(competitor.data("audit"), "headings")
        metrics = {
            "structure_score": compare_metric(
                _heading_score(subject_headings),
                _heading_score(competitor_headings),
            )
        }
        details = {
            "subject": _heading_counts(subject_headings),
            "competitor": _heading_counts(competitor_headings),
        }
        return _family("headings", metrics, details)

    def _backlinks(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_data = subject.data("backlinks")
        competitor_data = competitor.data("backlinks")
        metrics = {
            name: compare_metric(_get(subject_data, name), _get(competitor_data, name))
            for name in ("total_backlinks", "total_ref_domains")
        }
        return _family("backlinks", metrics)

    def _traffic(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_metrics = _get(subject.data("traffic"), "metrics")
        competitor_metrics = _get(competitor.data("traffic"), "metrics")
        metrics = {
            "monthly_visits": compare_metric(
                _get(subject_metrics, "monthly_visits"),
                _get(competitor_metrics, "monthly_visits"),
            ),
            "bounce_rate": compare_metric(
                _get(subject_metrics, "bounce_rate"),
                _get(competitor_metrics, "bounce_rate"),
                higher_is_better=False,
            ),
        }
        details = {
            "subject_source": _get(subject.data("traffic"), "source"),
            "competitor_source": _get(competitor.data("traffic"), "source"),
        }
        return _family("traffic", metrics, details)

    def _technology(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_stack = _stack(_get(subject.data("audit"), "technology"))
        competitor_stack = _stack(_get(competitor.data("audit"), "technology"))
        metrics = {
            "stack_size": compare_metric(
                len(subject_stack) if subject_stack is not None else None,
                len(competitor_stack) if competitor_stack is not None else None,
            )
        }
        subject_set = set(subject_stack or [])
        competitor_set = set(competitor_stack or [])
        details = {
            "subject": subject_stack,
            "competitor": competitor_stack,
            "shared": sorted(subject_set & competitor_set),
            "subject_only": sorted(subject_set - competitor_set),
            "competitor_only": sorted(competitor_set - subject_set),
        }
        return _family("technology", metrics, details)

    def _security(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_security = _get(subject.data("audit"), "security")
        competitor_security = _get(competitor.data("audit"), "security")
        metrics = {
            "security_score": compare_metric(
                _security_score(subject_security),
                _security_score(competitor_security),
            )
        }
        details = {
            "subject": subject_security if isinstance(subject_security, dict) else None,
            "competitor": competitor_security if isinstance(competitor_security, dict) else None,
        }
        return _family("security", metrics, details)

    def _content(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        subject_activity = _get(subject.data("content_changes"), "activity")
        competitor_activity = _get(competitor.data("content_changes"), "activity")
        metrics = {
            "posts_last_30_days": compare_metric(
                _get(subject_activity, "posts_last_30_days"),
                _get(competitor_activity, "posts_last_30_days"),
            )
        }
        details = {
            "subject_frequency": _get(subject_activity, "update_frequency"),
            "competitor_frequency": _get(competitor_activity, "update_frequency"),
        }
        return _family("content", metrics, details)

    def _social(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        metrics: dict[str, MetricComparison] = {}
        for network in ("instagram", "facebook"):
            metrics[f"{network}_followers"] = compare_metric(
                _get(_get(subject.data(network), "profile"), "followers"),
                _get(_get(competitor.data(network), "profile"), "followers"),
            )
            metrics[f"{network}_engagement_rate"] = compare_metric(
                _get(_get(_get(subject.data(network), "engagement"), "summary"), "engagement_rate"),
                _get(_get(_get(competitor.data(network), "engagement"), "summary"), "engagement_rate"),
            )
        return _family("social", metrics)

    def _advertising(self, subject: SiteSnapshot, competitor: SiteSnapshot) -> FamilyComparison:
        metrics: dict[str, MetricComparison] = {}
        for network in ("google_ads", "meta_ads"):
            metrics[f"{network}_total_ads"] = compare_metric(
                _get(subject.data(network), "total_ads"),
                _get(competitor.data(network), "total_ads"),
            )
            metrics[f"{network}_estimated_spend"] = compare_metric(
                _get(subject.data(network), "estimated_spend"),
                _get(competitor.data(network), "estimated_spend"),
            )
        return _family("advertising", metrics)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    @staticmethod
    def _summary(families: dict[str, FamilyComparison]) -> dict[str, Any]:
        ordered = [families[name] for name in FAMILY_ORDER if name in families]
        subject_wins = [family.name for family in ordered if family.winner == SUBJECT]
        competitor_wins = [family.name for family in ordered if family.winner == COMPETITOR]
        ties = [family.name for family in ordered if family.winner == TIE]
        unknown = [family.name for family in ordered if family.winner is None]

        if not subject_wins and not competitor_wins and not ties:
            overall = None
        elif len(subject_wins) > len(competitor_wins):
            overall = SUBJECT
        elif len(competitor_wins) > len(subject_wins):
            overall = COMPETITOR
        else:
            overall = TIE

        return {
            "overall_winner": overall,
            "subject_wins": len(subject_wins),
            "competitor_wins": len(competitor_wins),
            "ties": len(ties),
            "unknown": len(unknown),
            "strengths": subject_wins,
            "weaknesses": competitor_wins,
            "unknown_families": unknown,
            "recommendations": [RECOMMENDATIONS[name] for name in competitor_wins],
        }


def _family(
    name: str,
    metrics: dict[str, MetricComparison],
    details: dict[str, Any] | None = None,
) -> FamilyComparison:
    return FamilyComparison(
        name=name,
        metrics=metrics,
        winner=family_winner(metrics),
        details=details or {},
    )


def _get(container: Any, key: str) -> Any:
    if isinstance(container, dict):
        return container.get(key)
    return None


def _number(value: Any) -> Number | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    return value


def _round(value: Number) -> Number:
    if isinstance(value, int):
        return value
    return round(value, 2)


def _mean(scores: dict[str, Any]) -> float | None:
    values = [
        number
        for number in (_number(scores.get(name)) for name in ("performance", "accessibility", "seo", "best_practices"))
        if number is not None
    ]
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def _heading_counts(headings: Any) -> dict[str, int] | None:
    if not isinstance(headings, dict):
        return None
    return {
        name: int(_number(headings.get(name)) or 0)
        for name in ("h1_count", "h2_count", "h3_count")
    }


def _heading_score(headings: Any) -> int | None:
    counts = _heading_counts(headings)
    if counts is None:
        return None
    score = 0
    if counts["h1_count"] == 1:
        score += 10
    if counts["h2_count"] > 0:
        score += 5
    if counts["h3_count"] > 0:
        score += 5
    return score


def _stack(technology: Any) -> list[str] | None:
    if not isinstance(technology, dict):
        return None
    items: list[str] = []
    cms = technology.get("cms")
    if isinstance(cms, str) and cms:
        items.append(cms)
    for key in ("frameworks", "analytics"):
        values = technology.get(key)
        if isinstance(values, list):
            items.extend(str(value) for value in values if value)
    return sorted(set(items))


def _security_score(security: Any) -> int | None:
    if not isinstance(security, dict):
        return None
    score = 0
    if security.get("is_https"):
        score += 40
    if security.get("has_cdn"):
        score += 20
    if not security.get("has_mixed_content"):
        score += 20
    if security.get("has_robots_txt"):
        score += 10
    if security.get("has_sitemap"):
        score += 10
    return score
