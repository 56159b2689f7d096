"""
EffectForge Constitution Engine - Compliance Scoring & Enforcement

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Scores a generated effect against seven weighted articles and, when the
weighted total is below the enforcement threshold, raises it by adding
capability blocks for every failing article.

Articles:
1. Performance Absolute   - FPS, render time, memory estimates
2. Adaptive Intelligence  - calibration / device detection / monitoring markers
3. Universal Versatility  - platform coverage and compatibility markers
4. Perfect Experience     - one-click, live preview, interaction markers
5. Visual Impact          - wow factor, physics, render quality markers
6. Addictive Ecosystem    - immersion, variation, feedback markers
7. Competitive Domination - articles 1-6 plus innovation and metrics

Scoring is a pure function of the effect's code and metadata. Enforcement
is one pass followed by one rescore, never a loop:

    UNSCORED -> SCORED -> (ENFORCED -> rescored) -> FINAL
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from .capabilities import apply_capabilities
from .core.types import (
    ArticleResult,
    ComplianceReport,
    ComplianceState,
    GeneratedEffect,
    OutputType,
    COMPLIANCE_FLAGS,
)
from .generator import format_value
from .optimizer import round_half_up

logger = logging.getLogger(__name__)


# =============================================================================
# ARTICLES
# =============================================================================

@dataclass(frozen=True)
class Article:
    """One constitution article."""
    id: int
    name: str
    description: str
    weight: float         # Percent of the total, all seven sum to 100
    pass_bar: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["flag"] = COMPLIANCE_FLAGS[self.id]
        return d


ARTICLES: List[Article] = [
    Article(1, "Performance Absolute",
            "Every effect runs at 60fps or better within the frame budget", 14.3, 90),
    Article(2, "Adaptive Intelligence",
            "Auto-calibration and adaptation to system conditions", 14.3, 90),
    Article(3, "Universal Versatility",
            "Cross-platform code and browser compatibility", 14.3, 90),
    Article(4, "Perfect Experience",
            "One-click start with a live preview", 14.3, 90),
    Article(5, "Visual Impact",
            "Wow factor with advanced physics and high-quality rendering", 14.3, 90),
    Article(6, "Addictive Ecosystem",
            "Immersive experience with variation and feedback", 14.3, 90),
    Article(7, "Competitive Domination",
            "Performance and quality beyond the competition", 14.2, 95),
]

ARTICLES_BY_ID = {a.id: a for a in ARTICLES}

# Enforcement runs when the weighted total is below this
ENFORCEMENT_THRESHOLD = 90

# Frame budget for 60fps
FRAME_BUDGET_MS = 16.67


# =============================================================================
# HELPERS
# =============================================================================

def _first_code(effect: GeneratedEffect, *output_types: OutputType) -> str:
    """First non-empty code among the given fields, in order."""
    for output_type in output_types:
        code = effect.code_for(output_type)
        if code:
            return code
    return ""


def _contains_any(code: str, markers: Iterable[str]) -> bool:
    return any(marker in code for marker in markers)


def _result(article_id: int, raw_score: float, details: str,
            recommendations: List[str]) -> ArticleResult:
    article = ARTICLES_BY_ID[article_id]
    score = round_half_up(raw_score)
    return ArticleResult(
        article_id=article_id,
        name=article.name,
        score=score,
        compliant=score >= article.pass_bar,
        details=details,
        recommendations=recommendations,
    )


def _marker_article(article_id: int, code: str, parts, label: Callable[[float], str]) -> ArticleResult:
    """Score an article made of (points, markers, recommendation) parts."""
    score = 0.0
    recommendations = []
    for points, markers, recommendation in parts:
        if _contains_any(code, markers):
            score += points
        else:
            recommendations.append(recommendation)
    return _result(article_id, score, label(score), recommendations)


# =============================================================================
# ARTICLE SCORING
# =============================================================================

def score_performance(effect: GeneratedEffect) -> ArticleResult:
    """Article 1: 40 for FPS, 40 for render time, 20 for memory."""
    meta = effect.metadata
    recommendations = []

    fps_score = 40 if meta.fps >= 60 else (meta.fps / 60) * 40
    if meta.fps < 60:
        recommendations.append("Increase target FPS to 60 for constitutional compliance")

    if meta.render_time <= FRAME_BUDGET_MS:
        render_score = 40
    else:
        render_score = max(0, 40 - (meta.render_time - FRAME_BUDGET_MS) * 2)
        recommendations.append("Optimize render time to under 16.67ms (60fps requirement)")

    if meta.memory_usage <= 256:
        memory_score = 20
    else:
        memory_score = max(0, 20 - ((meta.memory_usage - 256) / 256) * 20)
        recommendations.append("Reduce memory usage to under 256MB for optimal performance")

    details = (
        f"FPS: {format_value(meta.fps)}, Render: {format_value(meta.render_time)}ms, "
        f"Memory: {format_value(meta.memory_usage)}MB"
    )
    return _result(1, fps_score + render_score + memory_score, details, recommendations)


def score_adaptive_intelligence(effect: GeneratedEffect) -> ArticleResult:
    """Article 2: markers in the primary code."""
    code = _first_code(effect, OutputType.JAVASCRIPT, OutputType.CSS, OutputType.AFTEREFFECTS)
    return _marker_article(2, code, [
        (50, ("autoCalibrate", "adaptiveParameters"), "Add auto-calibration functionality"),
        (25, ("detectPlatform", "deviceCapacity"), "Add device detection and adaptation"),
        (25, ("performanceMonitor", "optimizeForNextFrame"),
         "Add performance monitoring and dynamic optimization"),
    ], lambda s: f"Adaptive features: {'Advanced' if s > 75 else 'Basic' if s > 50 else 'Limited'}")


def score_universal_versatility(effect: GeneratedEffect) -> ArticleResult:
    """Article 3: platform coverage plus compatibility markers."""
    platforms = effect.platform_count
    code = _first_code(effect, OutputType.JAVASCRIPT, OutputType.CSS)
    score = (platforms / 3) * 40
    recommendations = []

    if platforms < 2:
        recommendations.append("Generate code for multiple platforms (JS, CSS, AE)")

    if _contains_any(code, ("crossBrowser", "polyfill", "compatibility")):
        score += 30
    else:
        recommendations.append("Add cross-browser compatibility features")

    if "detectPlatform" in code and "setupCrossBrowserCompat" in code:
        score += 30
    else:
        recommendations.append("Add universal codec and platform detection")

    details = f"Platforms: {platforms}/3, Cross-compatibility: {'Full' if score > 70 else 'Partial'}"
    return _result(3, score, details, recommendations)


def score_perfect_experience(effect: GeneratedEffect) -> ArticleResult:
    """Article 4: JavaScript only."""
    code = effect.code_for(OutputType.JAVASCRIPT)
    return _marker_article(4, code, [
        (50, ("oneClick", "start()", "init()"), "Add one-click initialization functionality"),
        (30, ("livePreview", "render()", "requestAnimationFrame"), "Add live preview functionality"),
        (20, ("bindEvents", "interactive", "mousemove"), "Add interactive user experience features"),
    ], lambda s: f"UX Features: {'Complete' if s > 80 else 'Good' if s > 50 else 'Basic'}")


def score_visual_impact(effect: GeneratedEffect) -> ArticleResult:
    """Article 5: JavaScript, else CSS."""
    code = _first_code(effect, OutputType.JAVASCRIPT, OutputType.CSS)
    return _marker_article(5, code, [
        (40, ("wowFactor", "spectacular", "glow"),
         "Add visual wow factor elements (glow, shadows, effects)"),
        (30, ("physics", "gravity", "friction"), "Add advanced physics simulation"),
        (30, ("antialiasing", "smoothing", "quality"), "Add high-quality visual rendering features"),
    ], lambda s: f"Visual Impact: {'Spectacular' if s > 80 else 'Good' if s > 50 else 'Basic'}")


def score_addictive_ecosystem(effect: GeneratedEffect) -> ArticleResult:
    """Article 6: JavaScript only."""
    code = effect.code_for(OutputType.JAVASCRIPT)
    return _marker_article(6, code, [
        (50, ("immersive", "engaging", "interactive"),
         "Add immersive and engaging interaction features"),
        (30, ("surprise", "variation", "random"),
         "Add surprise elements and variations to maintain engagement"),
        (20, ("progress", "achievement", "feedback"), "Add progress tracking and feedback mechanisms"),
    ], lambda s: f"Engagement Level: {'Addictive' if s > 80 else 'Engaging' if s > 50 else 'Basic'}")


def score_competitive_domination(effect: GeneratedEffect,
                                 prior: Dict[int, bool]) -> ArticleResult:
    """
    Article 7.

    `prior` holds the compliance of articles 1-6 from the same scoring
    pass, so the result never depends on an earlier report.
    """
    meta = effect.metadata
    recommendations = []

    others_average = sum(100 if prior.get(i) else 0 for i in range(1, 7)) / 6
    score = (others_average / 100) * 40

    code = _first_code(effect, OutputType.JAVASCRIPT, OutputType.CSS)
    if _contains_any(code, ("innovative", "revolutionary", "advanced")):
        score += 30
    else:
        recommendations.append("Add innovative and revolutionary features")

    if meta.render_time < 10 and meta.fps >= 60 and meta.memory_usage < 200:
        score += 30
    else:
        recommendations.append("Achieve superior performance metrics vs competition")

    label = 'Dominant' if score > 95 else 'Superior' if score > 80 else 'Competitive'
    return _result(7, score, f"Competitive Position: {label}", recommendations)


ARTICLE_SCORERS = [
    score_performance,
    score_adaptive_intelligence,
    score_universal_versatility,
    score_perfect_experience,
    score_visual_impact,
    score_addictive_ecosystem,
]


# =============================================================================
# AGGREGATION
# =============================================================================

def weighted_total(scores: Dict[int, float]) -> int:
    """round(sum(weight_i * score_i / 100)) over the seven articles."""
    return round_half_up(sum(
        ARTICLES_BY_ID[article_id].weight * score / 100
        for article_id, score in scores.items()
    ))


def score_compliance(effect: GeneratedEffect) -> ComplianceReport:
    """
    Full report for an effect. Reads, never mutates.

    Missing code fields count as empty strings.
    """
    results = [scorer(effect) for scorer in ARTICLE_SCORERS]
    prior = {r.article_id: r.compliant for r in results}
    results.append(score_competitive_domination(effect, prior))
    total = weighted_total({r.article_id: r.score for r in results})
    return ComplianceReport(articles=results, total_score=total)


def clamp_performance_metadata(effect: GeneratedEffect) -> None:
    """Article 1 enforcement on declared metadata."""
    meta = effect.metadata
    meta.render_time = min(meta.render_time, 15)
    meta.fps = max(meta.fps, 60)
    meta.memory_usage = min(meta.memory_usage, 256)


# =============================================================================
# ENGINE
# =============================================================================

class ComplianceEngine:
    """
    Scores and enforces the constitution on generated effects.

    Holds no per-effect state; everything it learns is written to the
    effect through record_scoring().
    """

    def __init__(self, enforcement_threshold: int = ENFORCEMENT_THRESHOLD):
        self.enforcement_threshold = enforcement_threshold

    def score(self, effect: GeneratedEffect) -> ComplianceReport:
        """Read-only report (for display and the validate API)."""
        return score_compliance(effect)

    def evaluate(self, effect: GeneratedEffect) -> ComplianceReport:
        """Score and store the report on the effect."""
        report = score_compliance(effect)
        effect.record_scoring(report)
        if effect.compliance_state is ComplianceState.UNSCORED:
            effect.compliance_state = ComplianceState.SCORED
        return report

    def enforce_once(self, effect: GeneratedEffect, report: ComplianceReport) -> List[str]:
        """
        Add capability blocks for every failing article and clamp
        metadata when Article 1 fails. Returns the applied block keys.
        """
        failing = report.failing
        applied = apply_capabilities(effect, failing)
        if 1 in failing:
            clamp_performance_metadata(effect)
        effect.compliance_state = ComplianceState.ENFORCED
        return applied

    def enforce_compliance(self, effect: GeneratedEffect) -> ComplianceReport:
        """
        Score, enforce once if below the threshold, then rescore.

        The effect ends in FINAL state with its score and flags matching
        the returned report.
        """
        report = self.evaluate(effect)
        before = report.total_score

        if report.total_score < self.enforcement_threshold:
            applied = self.enforce_once(effect, report)
            report = self.evaluate(effect)
            logger.info(
                f"Enforced compliance on {effect.id}: {before} -> {report.total_score} "
                f"({len(applied)} blocks)",
                extra={"effect_id": effect.id},
            )
            if report.failing:
                logger.debug(f"Articles still below bar for {effect.id}: {report.failing}")

        effect.compliance_state = ComplianceState.FINAL
        return report

    def finalize_without_enforcement(self, effect: GeneratedEffect) -> ComplianceReport:
        """Score only (constitution disabled for the request)."""
        report = self.evaluate(effect)
        effect.compliance_state = ComplianceState.FINAL
        return report

    @staticmethod
    def get_articles() -> List[Dict[str, Any]]:
        return [a.to_dict() for a in ARTICLES]

    @staticmethod
    def get_article(article_id: int) -> Optional[Dict[str, Any]]:
        article = ARTICLES_BY_ID.get(article_id)
        return article.to_dict() if article else None

    def summarise_library(self, records: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
        """
        System-wide compliance over stored effect records.

        Each record is rescored, so the figures never drift from the
        current article definitions.
        """
        totals: List[int] = []
        per_article: Dict[str, List[int]] = {a.name: [] for a in ARTICLES}
        compliant = 0

        for record in records:
            report = self.score(GeneratedEffect.from_dict(record))
            totals.append(report.total_score)
            for result in report.articles:
                per_article[result.name].append(result.score)
            if not report.failing:
                compliant += 1

        def mean(values: List[int]) -> float:
            return round(sum(values) / len(values), 1) if values else 0.0

        return {
            "averageScore": mean(totals),
            "totalEffects": len(totals),
            "compliantEffects": compliant,
            "articleBreakdown": {name: mean(scores) for name, scores in per_article.items()},
        }


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "ComplianceEngine",
    "Article",
    "ARTICLES",
    "ARTICLES_BY_ID",
    "ENFORCEMENT_THRESHOLD",
    "score_compliance",
    "weighted_total",
    "clamp_performance_metadata",
    "score_performance",
    "score_adaptive_intelligence",
    "score_universal_versatility",
    "score_perfect_experience",
    "score_visual_impact",
    "score_addictive_ecosystem",
    "score_competitive_domination",
]
