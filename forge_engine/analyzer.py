"""
EffectForge Engine - Lexical Analyzer v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Keyword-based feature extraction from effect prompts.
Turns free text into an EffectDNA record: primary concepts, an emotional
profile, technical requirements, a confidence score and a flag for
compliance-related wording.

No model, no API calls: every signal is a token lookup against the
fixed tables below. Never raises for string input.
"""

import re
import json
import logging
from typing import Dict, List, Any, Optional, Sequence

from .core.types import EffectDNA, EmotionalProfile, TechnicalRequirements

logger = logging.getLogger(__name__)


# =============================================================================
# KEYWORD DICTIONARIES
# =============================================================================

EFFECT_VOCABULARY = (
    "particle", "explosion", "fade", "glow", "blur", "transition",
    "animation", "rotate", "scale", "translate", "color", "gradient",
    "shadow", "light", "dark", "bright", "smooth", "rough",
    "fast", "slow", "spiral", "wave", "pulse", "bounce",
    "plasma", "fire", "water", "earth", "air", "energy",
    "magic", "cosmic", "digital", "neon", "chrome", "glass",
)

EMOTION_KEYWORDS = {
    "energy": ["fast", "explosive", "dynamic", "powerful", "intense"],
    "complexity": ["intricate", "detailed", "layered", "sophisticated"],
    "elegance": ["smooth", "graceful", "refined", "subtle", "clean"],
}

# Words that push the performance/memory estimate up or down
HEAVY_WORDS = ["particle", "complex", "detailed", "3d"]
LIGHT_WORDS = ["simple", "basic", "minimal", "clean"]

COMPLIANCE_KEYWORDS = [
    "performance", "fast", "smooth", "60fps", "optimized",
    "adaptive", "intelligent", "responsive", "cross-platform",
    "perfect", "flawless", "seamless", "visual", "stunning",
    "wow", "spectacular", "immersive", "engaging", "addictive",
    "superior", "best", "ultimate", "revolutionary",
]

# Loose groupings used when describing concepts to users
EFFECT_PATTERNS = {
    "particle": ["explosion", "dust", "sparkle", "trail"],
    "transition": ["fade", "slide", "zoom", "flip"],
    "animation": ["bounce", "pulse", "wiggle", "shake"],
    "visual": ["glow", "blur", "shadow", "gradient"],
}

MAX_CONCEPTS = 5
MIN_COMPLIANCE_MATCHES = 2
COMPATIBILITY = ["web", "mobile", "desktop"]

BASE_PERFORMANCE = 60.0
MIN_PERFORMANCE = 30.0
BASE_MEMORY = 256.0
MIN_MEMORY = 64.0

EFFECT_VOCABULARY_SET = frozenset(EFFECT_VOCABULARY)

_PUNCTUATION = re.compile(r"[^\w\s]", re.ASCII)


# =============================================================================
# MAIN ANALYSIS FUNCTION
# =============================================================================

def analyze(text: Optional[str]) -> EffectDNA:
    """
    Run lexical analysis on a prompt.

    Args:
        text: Free-text effect description (None and "" are allowed)

    Returns:
        EffectDNA for the prompt. Empty input gives empty concepts,
        a zero profile and confidence 0.
    """
    tokens = tokenize(text)
    if not tokens:
        return _empty_dna()

    concepts = extract_concepts(tokens)
    return EffectDNA(
        primary_concepts=concepts,
        emotional_profile=analyse_emotional_profile(tokens),
        technical_requirements=analyse_technical_requirements(tokens),
        confidence_score=calculate_confidence(tokens, concepts),
        constitution_compliance=check_compliance_keywords(tokens),
    )


def _empty_dna() -> EffectDNA:
    """Return DNA for input with no usable tokens."""
    return EffectDNA(
        primary_concepts=[],
        emotional_profile=EmotionalProfile(),
        technical_requirements=TechnicalRequirements(
            performance=BASE_PERFORMANCE,
            memory=BASE_MEMORY,
            compatibility=list(COMPATIBILITY),
        ),
        confidence_score=0.0,
        constitution_compliance=False,
    )


# =============================================================================
# EXTRACTION FUNCTIONS
# =============================================================================

def tokenize(text: Optional[str]) -> List[str]:
    """
    Lowercase, replace punctuation with spaces, split on whitespace and
    drop tokens of two characters or fewer.
    """
    if not text:
        return []
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) > 2]


def extract_concepts(tokens: Sequence[str]) -> List[str]:
    """
    Top vocabulary words by frequency.

    Ties keep first-seen order: counts are collected in an insertion
    ordered dict and the sort is stable.
    """
    frequency: Dict[str, int] = {}
    for token in tokens:
        if token in EFFECT_VOCABULARY_SET:
            frequency[token] = frequency.get(token, 0) + 1

    ranked = sorted(frequency.items(), key=lambda item: -item[1])
    return [concept for concept, _ in ranked[:MAX_CONCEPTS]]


def word_score(tokens: Sequence[str], words: Sequence[str]) -> float:
    """Fraction of tokens that appear in `words`."""
    matches = sum(1 for token in tokens if token in words)
    return matches / max(len(tokens), 1)


def analyse_emotional_profile(tokens: Sequence[str]) -> EmotionalProfile:
    """Energy, complexity and elegance ratios, each capped at 1.0."""
    return EmotionalProfile(
        energy=min(1.0, word_score(tokens, EMOTION_KEYWORDS["energy"])),
        complexity=min(1.0, word_score(tokens, EMOTION_KEYWORDS["complexity"])),
        elegance=min(1.0, word_score(tokens, EMOTION_KEYWORDS["elegance"])),
    )


def analyse_technical_requirements(tokens: Sequence[str]) -> TechnicalRequirements:
    """Estimate target FPS and memory from heavy/light wording."""
    heaviness = word_score(tokens, HEAVY_WORDS) - word_score(tokens, LIGHT_WORDS)
    return TechnicalRequirements(
        performance=max(MIN_PERFORMANCE, BASE_PERFORMANCE - heaviness * 30),
        memory=max(MIN_MEMORY, BASE_MEMORY + heaviness * 256),
        compatibility=list(COMPATIBILITY),
    )


def calculate_confidence(tokens: Sequence[str], concepts: Sequence[str]) -> float:
    """Average of vocabulary coverage and concept strength, clamped to [0, 1]."""
    vocabulary_matches = sum(1 for token in tokens if token in EFFECT_VOCABULARY_SET)
    coverage = vocabulary_matches / max(len(tokens), 1)
    concept_strength = len(concepts) / MAX_CONCEPTS
    return max(0.0, min(1.0, (coverage + concept_strength) / 2))


def check_compliance_keywords(tokens: Sequence[str]) -> bool:
    """True when at least two tokens are compliance keywords."""
    matches = sum(1 for token in tokens if token in COMPLIANCE_KEYWORDS)
    return matches >= MIN_COMPLIANCE_MATCHES


def concept_patterns(concepts: Sequence[str]) -> List[str]:
    """Pattern groups (particle, transition, ...) the concepts belong to."""
    groups = []
    for group, members in EFFECT_PATTERNS.items():
        if group in concepts or any(c in members for c in concepts):
            groups.append(group)
    return groups


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def summarise_dna(dna: EffectDNA) -> str:
    """
    Human-readable summary of a DNA record for logs and the analyze API.

    Args:
        dna: Output from analyze()

    Returns:
        Short multi-part description
    """
    parts = []

    if dna.primary_concepts:
        parts.append(f"Concepts: {', '.join(dna.primary_concepts)}")
        groups = concept_patterns(dna.primary_concepts)
        if groups:
            parts.append(f"Patterns: {', '.join(groups)}")

    profile = dna.emotional_profile
    moods = [
        name for name, value in (
            ("energetic", profile.energy),
            ("complex", profile.complexity),
            ("elegant", profile.elegance),
        ) if value > 0
    ]
    if moods:
        parts.append(f"Mood: {', '.join(moods)}")

    tech = dna.technical_requirements
    parts.append(f"Target: {tech.performance:.0f}fps / {tech.memory:.0f}MB")
    parts.append(f"Confidence: {dna.confidence_score:.2f}")

    if dna.constitution_compliance:
        parts.append("Mentions compliance keywords")

    return "\n".join(parts)


def to_json(dna: EffectDNA) -> str:
    """Serialise DNA to JSON string."""
    return json.dumps(dna.to_dict())


def from_json(json_str: str) -> Optional[EffectDNA]:
    """Deserialise DNA from JSON string."""
    if not json_str:
        return None
    try:
        return EffectDNA.from_dict(json.loads(json_str))
    except (json.JSONDecodeError, TypeError, AttributeError) as e:
        logger.warning(f"Could not decode DNA JSON: {e}")
        return None


# =============================================================================
# CLASS WRAPPER
# =============================================================================

class LexicalAnalyzer:
    """Wrapper class for lexical analysis (stateless)."""

    @staticmethod
    def analyze(text: Optional[str]) -> EffectDNA:
        """Analyse text and return its DNA."""
        return analyze(text)

    @staticmethod
    def summarise(dna: EffectDNA) -> str:
        """Summarise DNA for display."""
        return summarise_dna(dna)


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    # Classes
    "LexicalAnalyzer",
    # Main functions
    "analyze",
    "summarise_dna",
    "to_json",
    "from_json",
    # Extraction functions
    "tokenize",
    "extract_concepts",
    "word_score",
    "analyse_emotional_profile",
    "analyse_technical_requirements",
    "calculate_confidence",
    "check_compliance_keywords",
    "concept_patterns",
    # Constants
    "EFFECT_VOCABULARY",
    "EMOTION_KEYWORDS",
    "HEAVY_WORDS",
    "LIGHT_WORDS",
    "COMPLIANCE_KEYWORDS",
    "EFFECT_PATTERNS",
    "MAX_CONCEPTS",
]
