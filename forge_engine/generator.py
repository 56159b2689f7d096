"""
EffectForge Engine - Code Generator v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Template selection and placeholder substitution.

Scores every template of the requested output type against the DNA,
picks the best one (first wins on a tie) and fills its placeholders
from a name -> value mapping in a single regex pass. Never raises:
unknown output types fall back to the JavaScript templates.
"""

import re
import logging
from typing import Dict, List, Optional, Tuple, Union

from .core.types import EffectDNA, GenerationOptions, OutputType
from .templates import (
    EffectTemplate,
    templates_for,
    CONSTITUTIONAL_MARKER,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Affinity weights for template scoring
PERFORMANCE_WEIGHT = 0.4
COMPLEXITY_WEIGHT = 0.3
ENERGY_WEIGHT = 0.3

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z_]+)\}\}")

DEFAULT_EFFECT_NAME = "Custom Effect"

# Statements placed in the constructor in place of CONSTITUTIONAL_MARKER.
# Only plain state: methods such as autoCalibrate() arrive with their
# capability blocks during enforcement, which also hook them into init().
CONSTITUTIONAL_SETUP_BLOCK = """// Constitutional compliance setup
    this.targetFPS = {{TARGET_FPS}};
    this.frameTime = 1000 / this.targetFPS;
    this.performanceMonitor = { samples: [], budget: this.frameTime };"""


# =============================================================================
# TEMPLATE SELECTION
# =============================================================================

def score_template(dna: EffectDNA, template: EffectTemplate) -> float:
    """
    Weighted affinity of a template for a DNA record.

    0.4 x performance + 0.3 x complexity closeness + 0.3 x energy closeness
    """
    profile = dna.emotional_profile
    complexity_match = 1 - abs(template.complexity - profile.complexity)
    energy_match = 1 - abs(template.energy - profile.energy)
    return (
        template.performance * PERFORMANCE_WEIGHT
        + complexity_match * COMPLEXITY_WEIGHT
        + energy_match * ENERGY_WEIGHT
    )


def select_template(dna: EffectDNA, output_type: Union[OutputType, str]) -> EffectTemplate:
    """Best-scoring template for the type. The earliest entry wins a tie."""
    candidates = templates_for(output_type)
    best = candidates[0]
    best_score = score_template(dna, best)
    for template in candidates[1:]:
        score = score_template(dna, template)
        if score > best_score:
            best, best_score = template, score
    return best


# =============================================================================
# SUBSTITUTION
# =============================================================================

def format_value(value) -> str:
    """Plain decimal text: integral numbers without a fraction, others trimmed."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        if float(value).is_integer():
            return str(int(value))
        return f"{value:.4f}".rstrip("0").rstrip(".")
    return str(value)


def substitute(code: str, values: Dict[str, object]) -> str:
    """
    Replace every {{NAME}} whose NAME is in `values`.

    Placeholders without a value are left untouched for later stages.
    """
    def replace(match: "re.Match") -> str:
        name = match.group(1)
        if name in values:
            return format_value(values[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, code)


def build_substitutions(dna: EffectDNA, options: GenerationOptions,
                        effect_name: str) -> Dict[str, object]:
    """Placeholder name -> value mapping for one generation request."""
    profile = dna.emotional_profile
    tech = dna.technical_requirements
    return {
        "EFFECT_NAME": class_name(effect_name),
        "EFFECT_SLUG": slugify(effect_name),
        "ENERGY": profile.energy,
        "COMPLEXITY": profile.complexity,
        "ELEGANCE": profile.elegance,
        "TARGET_FPS": options.target_fps,
        "MAX_MEMORY": options.max_memory,
        "CONCEPTS": ", ".join(dna.primary_concepts),
        "PERFORMANCE": tech.performance,
        "MEMORY": tech.memory,
        "SCALE": 1 + profile.complexity,
        "DURATION": max(0.3, 2 - profile.energy * 1.5),
    }


def add_constitutional_setup(code: str) -> str:
    """
    Swap the constructor marker for the setup block.

    A no-op once the marker has been replaced, so applying it twice
    never duplicates the block.
    """
    if CONSTITUTIONAL_MARKER not in code:
        return code
    return code.replace(CONSTITUTIONAL_MARKER, CONSTITUTIONAL_SETUP_BLOCK, 1)


# =============================================================================
# NAMING
# =============================================================================

def generate_name(dna: EffectDNA) -> str:
    """First two concepts title-cased plus 'Effect'."""
    concepts = dna.primary_concepts[:2]
    if not concepts:
        return DEFAULT_EFFECT_NAME
    return " ".join(c.title() for c in concepts) + " Effect"


def class_name(name: str) -> str:
    """'Particle Fast Effect' -> 'ParticleFastEffect'."""
    words = re.findall(r"[A-Za-z0-9]+", name)
    result = "".join(w[:1].upper() + w[1:] for w in words)
    if not result or result[0].isdigit():
        result = "Effect" + result
    return result


def slugify(name: str) -> str:
    """'Particle Fast Effect' -> 'particle-fast-effect'."""
    words = re.findall(r"[A-Za-z0-9]+", name.lower())
    return "-".join(words) or "effect"


# =============================================================================
# GENERATION
# =============================================================================

def generate_code(dna: EffectDNA, output_type: Union[OutputType, str],
                  options: Optional[GenerationOptions] = None,
                  effect_name: Optional[str] = None) -> Tuple[EffectTemplate, str]:
    """
    Select a template and fill it in.

    Returns:
        (chosen template, generated source text)
    """
    options = options or GenerationOptions()
    effect_name = effect_name or generate_name(dna)
    template = select_template(dna, output_type)

    code = template.base_code
    if options.enable_constitution:
        code = add_constitutional_setup(code)
    code = substitute(code, build_substitutions(dna, options, effect_name))

    logger.debug(f"Generated {template.output_type.value} code from template {template.name}")
    return template, code


class EffectGenerator:
    """Template-based generator (stateless)."""

    def generate(self, dna: EffectDNA, output_type: Union[OutputType, str],
                 options: Optional[GenerationOptions] = None,
                 effect_name: Optional[str] = None) -> str:
        """Generated source text for the DNA and type."""
        return generate_code(dna, output_type, options, effect_name)[1]

    def generate_with_template(self, dna: EffectDNA, output_type: Union[OutputType, str],
                               options: Optional[GenerationOptions] = None,
                               effect_name: Optional[str] = None) -> Tuple[EffectTemplate, str]:
        return generate_code(dna, output_type, options, effect_name)

    @staticmethod
    def name_for(dna: EffectDNA) -> str:
        return generate_name(dna)

    @staticmethod
    def rank_templates(dna: EffectDNA, output_type: Union[OutputType, str]) -> List[Tuple[str, float]]:
        """All candidate templates with their scores, catalogue order."""
        return [(t.name, score_template(dna, t)) for t in templates_for(output_type)]


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "EffectGenerator",
    "generate_code",
    "score_template",
    "select_template",
    "format_value",
    "substitute",
    "build_substitutions",
    "add_constitutional_setup",
    "generate_name",
    "class_name",
    "slugify",
    "CONSTITUTIONAL_SETUP_BLOCK",
    "DEFAULT_EFFECT_NAME",
]
