"""
EffectForge Constitution Tests

Tests article scoring, weighted totals, enforcement and capability blocks.

Run with: pytest tests/test_constitution.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from forge_engine.capabilities import (
    apply_capabilities,
    CAPABILITY_BLOCKS,
    blocks_for,
    insert_class_member,
    insert_init_hook,
)
from forge_engine.constitution import (
    ComplianceEngine,
    ARTICLES,
    ARTICLES_BY_ID,
    ENFORCEMENT_THRESHOLD,
    score_compliance,
    weighted_total,
    score_performance,
    score_adaptive_intelligence,
    score_universal_versatility,
    score_perfect_experience,
    score_visual_impact,
    score_addictive_ecosystem,
    score_competitive_domination,
)
from forge_engine.core.types import (
    ComplianceState,
    EffectDNA,
    GeneratedEffect,
    OutputType,
    COMPLIANCE_FLAGS,
)


JS_CODE = """class GlowEffect {
  constructor(canvas) {
    this.canvas = canvas;
    this.init();
  }

  init() {
    this.ctx = this.canvas.getContext('2d');
  }
}
"""

CSS_CODE = """.glow-effect {
  transform: scale(1);
}
"""


def make_effect(js=JS_CODE, css=None, fps=60, render_time=10.0, memory=200.0):
    output_type = OutputType.JAVASCRIPT if js else OutputType.CSS
    effect = GeneratedEffect.create(
        name="Glow Effect",
        description="glow",
        type=output_type,
        category="visual",
        dna=EffectDNA(),
        fps=fps,
    )
    if js:
        effect.set_code(OutputType.JAVASCRIPT, js)
    if css:
        effect.set_code(OutputType.CSS, css)
    effect.metadata.render_time = render_time
    effect.metadata.memory_usage = memory
    return effect


# =============================================================================
# ARTICLES
# =============================================================================

class TestArticles:

    def test_seven_articles(self):
        assert [a.id for a in ARTICLES] == [1, 2, 3, 4, 5, 6, 7]

    def test_weights_sum_to_100(self):
        assert sum(a.weight for a in ARTICLES) == pytest.approx(100)

    def test_article_seven_has_higher_bar(self):
        assert ARTICLES_BY_ID[7].pass_bar == 95
        assert all(ARTICLES_BY_ID[i].pass_bar == 90 for i in range(1, 7))

    def test_get_articles_includes_flag(self):
        articles = ComplianceEngine.get_articles()
        assert articles[0]["flag"] == "performanceCompliant"
        assert ComplianceEngine.get_article(99) is None


# =============================================================================
# SCORING
# =============================================================================

class TestArticleScoring:

    def test_performance_full_marks(self):
        result = score_performance(make_effect(fps=60, render_time=10, memory=200))
        assert result.score == 100
        assert result.compliant is True
        assert result.recommendations == []

    def test_performance_low_fps(self):
        result = score_performance(make_effect(fps=30, render_time=10, memory=200))
        assert result.score == 80
        assert result.compliant is False
        assert any("60" in r for r in result.recommendations)

    def test_performance_slow_render(self):
        # 40 - (20.67 - 16.67) * 2 = 32
        result = score_performance(make_effect(render_time=20.67))
        assert result.score == 92

    def test_adaptive_markers(self):
        effect = make_effect(js=JS_CODE.replace("this.init();", "this.autoCalibrate();"))
        assert score_adaptive_intelligence(effect).score == 50

    def test_experience_css_only_is_zero(self):
        effect = make_effect(js=None, css=CSS_CODE)
        assert score_perfect_experience(effect).score == 0

    def test_competitive_uses_prior_flags(self):
        effect = make_effect(render_time=5, memory=100)
        all_pass = {i: True for i in range(1, 7)}
        none_pass = {i: False for i in range(1, 7)}

        assert score_competitive_domination(effect, all_pass).score == 70
        assert score_competitive_domination(effect, none_pass).score == 30


class TestWeightedTotal:

    def test_extremes(self):
        assert weighted_total({i: 100 for i in range(1, 8)}) == 100
        assert weighted_total({i: 0 for i in range(1, 8)}) == 0

    @pytest.mark.parametrize("scores, expected", [
        # 14.3 x 3 + 14.2 = 57.1
        ([100, 50, 0, 100, 50, 0, 100], 57),
        # 85.8 x 0.9 + 14.2 x 0.95 = 90.71
        ([90, 90, 90, 90, 90, 90, 95], 91),
        # 14.3 + 14.2 = 28.5, halves round up
        ([100, 0, 0, 0, 0, 0, 100], 29),
        # 7.15 + 7.1 = 14.25
        ([50, 0, 0, 0, 0, 0, 50], 14),
        ([100, 100, 100, 100, 100, 100, 0], 86),
        ([0, 0, 0, 0, 0, 0, 25], 4),
    ])
    def test_hand_computed_totals(self, scores, expected):
        assert weighted_total(dict(zip(range(1, 8), scores))) == expected

    def test_report_total_matches_article_scores(self):
        report = score_compliance(make_effect())
        weights = {1: 14.3, 2: 14.3, 3: 14.3, 4: 14.3, 5: 14.3, 6: 14.3, 7: 14.2}
        exact = sum(weights[r.article_id] * r.score for r in report.articles) / 100
        assert abs(report.total_score - exact) <= 0.5

    def test_flags_match_pass_bars(self):
        report = score_compliance(make_effect())
        for result in report.articles:
            bar = ARTICLES_BY_ID[result.article_id].pass_bar
            assert result.compliant == (result.score >= bar)
        assert set(report.flags) == set(COMPLIANCE_FLAGS.values())

    def test_scoring_is_pure(self):
        effect = make_effect()
        before = effect.to_dict()
        first = score_compliance(effect)
        second = score_compliance(effect)

        assert effect.to_dict() == before
        assert first.total_score == second.total_score
        assert effect.compliance_state is ComplianceState.UNSCORED

    def test_report_dict(self):
        d = score_compliance(make_effect()).to_dict()
        assert "totalScore" in d
        assert "Performance Absolute" in d["details"]
        assert "performanceCompliant" in d


# =============================================================================
# ENFORCEMENT
# =============================================================================

class TestEnforcement:

    def test_enforcement_never_lowers_score(self):
        effect = make_effect(fps=30, render_time=40, memory=600)
        before = score_compliance(effect).total_score

        report = ComplianceEngine().enforce_compliance(effect)

        assert before < ENFORCEMENT_THRESHOLD
        assert report.total_score >= before

    def test_effect_ends_final_and_consistent(self):
        effect = make_effect(fps=30)
        report = ComplianceEngine().enforce_compliance(effect)

        assert effect.compliance_state is ComplianceState.FINAL
        assert effect.metadata.constitution_score == report.total_score
        assert effect.compliance_flags == report.flags

    def test_article_one_failure_clamps_metadata(self):
        effect = make_effect(fps=30, render_time=40, memory=600)
        ComplianceEngine().enforce_compliance(effect)

        assert effect.metadata.fps == 60
        assert effect.metadata.render_time == 15
        assert effect.metadata.memory_usage == 256

    def test_blocks_are_added_once(self):
        effect = make_effect()
        engine = ComplianceEngine()
        engine.enforce_compliance(effect)
        code = effect.code_for(OutputType.JAVASCRIPT)

        engine.enforce_compliance(effect)

        assert effect.code_for(OutputType.JAVASCRIPT) == code
        assert code.count("autoCalibrate() {") == 1

    def test_finalize_without_enforcement(self):
        effect = make_effect()
        ComplianceEngine().finalize_without_enforcement(effect)

        assert effect.applied_capabilities == set()
        assert effect.compliance_state is ComplianceState.FINAL


# =============================================================================
# CAPABILITY BLOCKS
# =============================================================================

class TestCapabilities:

    def test_blocks_for_orders_by_article(self):
        blocks = blocks_for(OutputType.JAVASCRIPT, [5, 2, 3])
        assert [b.article_id for b in blocks] == [2, 3, 5]

    def test_css_has_no_experience_block(self):
        assert blocks_for(OutputType.CSS, [4, 6]) == []

    def test_javascript_blocks_hook_into_init(self):
        effect = make_effect()
        applied = apply_capabilities(effect, [2, 3])
        code = effect.code_for(OutputType.JAVASCRIPT)

        assert applied == ["javascript:adaptive_intelligence", "javascript:universal_compatibility"]
        assert "autoCalibrate() {" in code
        assert "setupCrossBrowserCompat() {" in code
        assert "init() {\n    this.setupCrossBrowserCompat();\n    this.autoCalibrate();" in code

    def test_repeat_apply_skips_known_keys(self):
        effect = make_effect()
        apply_capabilities(effect, [5])
        assert apply_capabilities(effect, [5]) == []
        assert effect.code_for(OutputType.JAVASCRIPT).count("createWowFactor() {") == 1

    def test_css_blocks_use_slug(self):
        effect = make_effect(js=None, css=CSS_CODE)
        apply_capabilities(effect, [1])
        assert ".glow-effect {\n  will-change: transform, opacity;" in effect.code_for(OutputType.CSS)

    def test_insert_helpers(self):
        assert insert_class_member("class A {\n}", "  x() {}") == "class A {\n  x() {}\n}"
        assert insert_init_hook("no init here", "this.go();") == "no init here"


# =============================================================================
# LIBRARY SUMMARY
# =============================================================================

class TestLibrarySummary:

    def test_empty_library(self):
        summary = ComplianceEngine().summarise_library([])
        assert summary["totalEffects"] == 0
        assert summary["averageScore"] == 0.0

    def test_summary_rescores_records(self):
        engine = ComplianceEngine()
        effect = make_effect()
        report = engine.enforce_compliance(effect)

        summary = engine.summarise_library([effect.to_dict()])

        assert summary["totalEffects"] == 1
        assert summary["averageScore"] == float(report.total_score)
        assert set(summary["articleBreakdown"]) == {a.name for a in ARTICLES}


# =============================================================================
# BLOCKS AGAINST THEIR ARTICLES
# =============================================================================

BARE_CODE = {
    OutputType.JAVASCRIPT: "class Bare {\n  init() {\n  }\n}\n",
    OutputType.CSS: ".bare {\n  opacity: 1;\n}\n",
    OutputType.AFTEREFFECTS: "var time = thisComp.time;\nvalue;\n",
}

# Articles scored on code markers alone
MARKER_SCORERS = {
    2: score_adaptive_intelligence,
    4: score_perfect_experience,
    5: score_visual_impact,
    6: score_addictive_ecosystem,
}


def bare_effect(output_type):
    effect = GeneratedEffect.create(
        name="Bare Effect",
        description="",
        type=output_type,
        category="visual",
        dna=EffectDNA(),
        fps=60,
    )
    effect.set_code(output_type, BARE_CODE[output_type])
    return effect


def blocks_of(*article_ids):
    return [b for b in CAPABILITY_BLOCKS if b.article_id in article_ids]


class TestBlocksSatisfyArticles:

    @pytest.mark.parametrize("block", blocks_of(*MARKER_SCORERS), ids=lambda b: b.key)
    def test_marker_article_reaches_full_marks(self, block):
        effect = bare_effect(block.output_type)
        apply_capabilities(effect, [block.article_id])

        result = MARKER_SCORERS[block.article_id](effect)

        assert result.score == 100
        assert result.recommendations == []

    def test_visual_block_adds_quality_marker(self):
        effect = bare_effect(OutputType.JAVASCRIPT)
        assert score_visual_impact(effect).score == 0

        apply_capabilities(effect, [5])
        result = score_visual_impact(effect)

        assert "this.antialiasing = true;" in effect.code_for(OutputType.JAVASCRIPT)
        assert result.compliant is True

    @pytest.mark.parametrize("block", blocks_of(3), ids=lambda b: b.key)
    def test_universal_block_covers_compatibility_markers(self, block):
        effect = bare_effect(block.output_type)
        apply_capabilities(effect, [3])

        recommendations = score_universal_versatility(effect).recommendations

        assert "Add cross-browser compatibility features" not in recommendations
        assert "Add universal codec and platform detection" not in recommendations

    @pytest.mark.parametrize("block", blocks_of(7), ids=lambda b: b.key)
    def test_competitive_block_adds_innovation_marker(self, block):
        effect = bare_effect(block.output_type)
        apply_capabilities(effect, [7])

        recommendations = score_competitive_domination(effect, {}).recommendations

        assert "Add innovative and revolutionary features" not in recommendations
