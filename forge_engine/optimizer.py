"""
EffectForge Engine - Optimizer v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Deterministic text rewrites of generated effect code.

Two entry points:
- optimize(): constraint-driven rewrites (memory budget, target FPS,
  platform) applied by the pipeline to every generated code field.
- optimize_code(): target-driven rewrites (performance, memory, quality)
  exposed through the optimize API.

Every rule is safe to run twice: a second pass leaves the code as it is.
Also estimates render time and memory usage from the rewritten code.
"""

import math
import re
import logging
from typing import Optional

from .core.config import ForgeConfig
from .core.types import GenerationOptions, GeneratedEffect, OutputType, Platform
from .capabilities import insert_class_member
from .generator import format_value
from .templates import FRAME_TIME_PLACEHOLDER

logger = logging.getLogger(__name__)


# =============================================================================
# PATTERNS
# =============================================================================

FIXED_ARRAY = re.compile(r"new Array\(\d+\)")
POLLING_TIMER = re.compile(r"\bsetInterval\b")
PARTICLE_COUNT = re.compile(r"(particleCount\s*)([=:])(\s*)\d+")
PARTICLE_COUNT_VALUE = re.compile(r"particleCount\s*[=:]\s*(\d+)")
VAR_LOOP = re.compile(r"for\s*\(\s*var\s+")
ELEMENT_LOOKUP = re.compile(r"(?<!\|\|= )document\.getElementById")
CONSTRUCTOR_OPEN = re.compile(r"^([ \t]*)constructor\([^)]*\)\s*\{[ \t]*$", re.MULTILINE)
RANDOM_CALL = re.compile(r"\bMath\.random\(\)")
CONTEXT_2D = re.compile(
    r"^([ \t]*)((?:(?:const|let|var)\s+)?([\w.]+)\s*=\s*[^;\n]*getContext\(['\"]2d['\"]\);?)[ \t]*$",
    re.MULTILINE,
)

# Render time / memory estimates
RENDER_MS_PER_KCHAR = 10
BASE_MEMORY_MB = 64
MEMORY_MB_PER_PARTICLE = 0.1
DEFAULT_PARTICLE_COUNT = 100
MIN_FRAME_FPS = 30

OPTIMIZATION_TARGETS = ("performance", "memory", "quality")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# CONSTRAINT RULES
# =============================================================================

def optimize_memory_usage(code: str) -> str:
    """Drop fixed-size array allocations and swap polling timers for frame callbacks."""
    code = FIXED_ARRAY.sub("[]", code)
    return POLLING_TIMER.sub("requestAnimationFrame", code)


def frame_time_ms(target_fps: int) -> float:
    """Frame budget in ms. Rates at or below 30 use the 30 FPS budget."""
    return 1000 / (target_fps if target_fps > MIN_FRAME_FPS else MIN_FRAME_FPS)


def optimize_frame_rate(code: str, target_fps: int) -> str:
    """Fill the frame-time placeholder with the frame budget."""
    return code.replace(FRAME_TIME_PLACEHOLDER, format_value(frame_time_ms(target_fps)))


def set_particle_count(code: str, count: int) -> str:
    """Set every particleCount literal to `count`, keeping `=` or `:`."""
    return PARTICLE_COUNT.sub(lambda m: f"{m.group(1)}{m.group(2)}{m.group(3)}{count}", code)


def optimize_for_platform(code: str, platform: Platform,
                          mobile_ceiling: int = 50, desktop_ceiling: int = 200) -> str:
    if platform is Platform.MOBILE:
        return set_particle_count(code, mobile_ceiling)
    if platform is Platform.DESKTOP:
        return set_particle_count(code, desktop_ceiling)
    return code


# =============================================================================
# ESTIMATES
# =============================================================================

def estimate_render_time(code: str) -> int:
    """Render time estimate in ms, proportional to code length."""
    return round_half_up(len(code) / 1000 * RENDER_MS_PER_KCHAR)


def extract_particle_count(code: str) -> int:
    match = PARTICLE_COUNT_VALUE.search(code)
    return int(match.group(1)) if match else DEFAULT_PARTICLE_COUNT


def estimate_memory_usage(code: str) -> int:
    """Memory estimate in MB: base plus a share per particle."""
    return round_half_up(BASE_MEMORY_MB + extract_particle_count(code) * MEMORY_MB_PER_PARTICLE)


# =============================================================================
# TARGET REWRITES
# =============================================================================

PERFORMANCE_MONITOR_SETUP = (
    "this.performanceMonitor = { samples: [], budget: 16.67 };",
    "this.frameTime = 16.67;",
)

CLEANUP_METHOD = """
  cleanup() {
    if (this.particles) {
      this.particles.length = 0;
    }
    if (this.canvas) {
      this.canvas.width = this.canvas.width;
    }
  }
"""

SEEDED_RANDOM_METHOD = """
  seededRandom() {
    this.seed = ((this.seed || 1) * 16807) % 2147483647;
    return (this.seed - 1) / 2147483646;
  }
"""


def optimize_for_performance(code: str) -> str:
    code = POLLING_TIMER.sub("requestAnimationFrame", code)
    code = VAR_LOOP.sub("for (let ", code)
    code = ELEMENT_LOOKUP.sub("this.cachedElement ||= document.getElementById", code)

    if "performanceMonitor" not in code:
        match = CONSTRUCTOR_OPEN.search(code)
        if match:
            indent = match.group(1) + "  "
            setup = "".join("\n" + indent + line for line in PERFORMANCE_MONITOR_SETUP)
            code = code[:match.end()] + setup + code[match.end():]
    return code


def optimize_for_memory(code: str) -> str:
    code = FIXED_ARRAY.sub("[]", code)
    if "cleanup()" not in code:
        code = insert_class_member(code, CLEANUP_METHOD)
    return code


def optimize_for_quality(code: str) -> str:
    if RANDOM_CALL.search(code):
        code = RANDOM_CALL.sub("this.seededRandom()", code)
    if "this.seededRandom()" in code and "seededRandom() {" not in code:
        code = insert_class_member(code, SEEDED_RANDOM_METHOD)

    if "imageSmoothingEnabled" not in code:
        def add_smoothing(match: "re.Match") -> str:
            indent, statement, target = match.group(1), match.group(2), match.group(3)
            return (
                f"{indent}{statement}\n"
                f"{indent}{target}.imageSmoothingEnabled = true;\n"
                f"{indent}{target}.imageSmoothingQuality = 'high';"
            )
        code = CONTEXT_2D.sub(add_smoothing, code, count=1)
    return code


def optimize_code(code: str, target: str) -> str:
    """
    Rewrite code for one optimisation target.

    Args:
        code: Effect source text
        target: 'performance', 'memory' or 'quality'; anything else
            returns the code unchanged
    """
    if target == "performance":
        return optimize_for_performance(code)
    if target == "memory":
        return optimize_for_memory(code)
    if target == "quality":
        return optimize_for_quality(code)
    return code


# =============================================================================
# OPTIMIZER
# =============================================================================

class EffectOptimizer:
    """Constraint-driven rewriter (stateless apart from its config)."""

    def __init__(self, config: Optional[ForgeConfig] = None):
        self.config = config or ForgeConfig()

    def optimize(self, code: str, options: GenerationOptions) -> str:
        """Apply the memory, frame-rate and platform rules in order."""
        if options.max_memory < self.config.low_memory_threshold:
            code = optimize_memory_usage(code)
        code = optimize_frame_rate(code, options.target_fps)
        return optimize_for_platform(
            code,
            options.platform,
            mobile_ceiling=self.config.mobile_particle_ceiling,
            desktop_ceiling=self.config.desktop_particle_ceiling,
        )

    def optimize_effect(self, effect: GeneratedEffect, options: GenerationOptions) -> GeneratedEffect:
        """Rewrite every code field, then refresh the estimates from the primary code."""
        for output_type in (OutputType.JAVASCRIPT, OutputType.CSS, OutputType.AFTEREFFECTS):
            code = effect.code_for(output_type)
            if code:
                effect.set_code(output_type, self.optimize(code, options))

        primary = effect.primary_code
        effect.metadata.render_time = estimate_render_time(primary)
        effect.metadata.memory_usage = estimate_memory_usage(primary)
        logger.debug(
            f"Optimised {effect.id}: render={effect.metadata.render_time}ms "
            f"memory={effect.metadata.memory_usage}MB"
        )
        return effect

    @staticmethod
    def optimize_code(code: str, target: str) -> str:
        return optimize_code(code, target)


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "EffectOptimizer",
    "optimize_code",
    "optimize_memory_usage",
    "optimize_frame_rate",
    "optimize_for_platform",
    "set_particle_count",
    "frame_time_ms",
    "estimate_render_time",
    "estimate_memory_usage",
    "extract_particle_count",
    "round_half_up",
    "OPTIMIZATION_TARGETS",
]
