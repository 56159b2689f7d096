"""
EffectForge Analyzer Tests

Tests tokenisation, concept extraction and DNA profiling.

Run with: pytest tests/test_analyzer.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from forge_engine.analyzer import (
    LexicalAnalyzer,
    analyze,
    tokenize,
    extract_concepts,
    calculate_confidence,
    check_compliance_keywords,
    concept_patterns,
    summarise_dna,
    to_json,
    from_json,
    EFFECT_VOCABULARY,
)


# =============================================================================
# TOKENIZE
# =============================================================================

class TestTokenize:

    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Hi, a FAST-moving glow!") == ["fast", "moving", "glow"]

    def test_drops_short_tokens(self):
        assert tokenize("an ox is at the sea") == ["the", "sea"]

    def test_empty_and_none(self):
        assert tokenize("") == []
        assert tokenize(None) == []

    def test_punctuation_only(self):
        assert tokenize("!!! ?? ... ,,,") == []


# =============================================================================
# CONCEPTS
# =============================================================================

class TestConcepts:

    def test_sorted_by_frequency(self):
        tokens = ["neon", "glow", "glow", "glow", "fire", "fire"]
        assert extract_concepts(tokens) == ["glow", "fire", "neon"]

    def test_ties_keep_first_seen_order(self):
        tokens = ["glow", "fast", "glow", "fast", "neon"]
        assert extract_concepts(tokens) == ["glow", "fast", "neon"]

    def test_at_most_five(self):
        tokens = list(EFFECT_VOCABULARY[:8])
        assert len(extract_concepts(tokens)) == 5

    def test_ignores_words_outside_vocabulary(self):
        assert extract_concepts(["burst", "trails", "sparkly"]) == []


# =============================================================================
# DNA
# =============================================================================

class TestAnalyze:

    def test_reference_prompt(self, e2e_prompt):
        dna = analyze(e2e_prompt)

        assert dna.primary_concepts == ["fast", "particle", "smooth"]
        assert dna.emotional_profile.energy == pytest.approx(0.25)
        assert dna.emotional_profile.elegance == pytest.approx(0.125)
        assert dna.emotional_profile.complexity == 0

    def test_reference_prompt_requirements(self, e2e_prompt):
        tech = analyze(e2e_prompt).technical_requirements

        # one heavy word in eight tokens
        assert tech.performance == pytest.approx(60 - 0.125 * 30)
        assert tech.memory == pytest.approx(256 + 0.125 * 256)
        assert tech.compatibility == ["web", "mobile", "desktop"]

    def test_reference_prompt_confidence(self, e2e_prompt):
        dna = analyze(e2e_prompt)
        assert dna.confidence_score == pytest.approx((3 / 8 + 3 / 5) / 2)
        assert dna.constitution_compliance is True

    def test_empty_prompt(self):
        dna = analyze("")

        assert dna.primary_concepts == []
        assert dna.emotional_profile.energy == 0
        assert dna.emotional_profile.complexity == 0
        assert dna.emotional_profile.elegance == 0
        assert dna.confidence_score == 0
        assert dna.constitution_compliance is False

    def test_light_words_lower_memory(self):
        tech = analyze("simple minimal clean fade").technical_requirements
        assert tech.memory < 256
        assert tech.performance > 60

    def test_heavy_prompt_floors(self):
        tech = analyze("particle particle particle").technical_requirements
        assert tech.performance == 30
        assert tech.memory == 512

    def test_single_compliance_keyword_is_not_enough(self):
        assert check_compliance_keywords(["stunning", "glow"]) is False
        assert check_compliance_keywords(["stunning", "seamless"]) is True

    def test_confidence_bounds(self):
        assert calculate_confidence([], []) == 0
        tokens = list(EFFECT_VOCABULARY[:5])
        assert calculate_confidence(tokens, tokens) == 1.0

    def test_wrapper_matches_function(self, e2e_prompt):
        assert LexicalAnalyzer.analyze(e2e_prompt) == analyze(e2e_prompt)


# =============================================================================
# OUTPUT
# =============================================================================

class TestOutput:

    def test_concept_patterns(self):
        assert concept_patterns(["particle", "fast"]) == ["particle"]
        assert concept_patterns(["glow", "fade"]) == ["transition", "visual"]

    def test_summary(self, e2e_prompt):
        summary = summarise_dna(analyze(e2e_prompt))

        assert "Concepts: fast, particle, smooth" in summary
        assert "Patterns: particle" in summary
        assert "Mood: energetic, elegant" in summary
        assert "Mentions compliance keywords" in summary

    def test_json_round_trip(self, e2e_prompt):
        dna = analyze(e2e_prompt)
        assert from_json(to_json(dna)) == dna

    def test_dna_uses_client_keys(self, e2e_prompt):
        d = analyze(e2e_prompt).to_dict()
        assert set(d) == {
            "primaryConcepts",
            "emotionalProfile",
            "technicalRequirements",
            "confidenceScore",
            "constitutionCompliance",
        }

    def test_from_json_rejects_garbage(self):
        assert from_json("") is None
        assert from_json("not json") is None
