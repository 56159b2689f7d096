"""
EffectForge Engine - Effect Generation Engine v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

EffectForge turns a short natural-language description of a visual
effect into source code for a web, CSS or After Effects target, then
tunes and scores that code against a seven-article quality constitution.

Stages:
- Analysis: keyword extraction into an EffectDNA profile (no LLM)
- Generation: template selection and placeholder substitution
- Optimization: memory, frame-rate and platform rewrites
- Compliance: weighted scoring, one enforcement pass, rescore
"""

__version__ = '1.0.0'


# =============================================================================
# CORE API
# =============================================================================

from .core import (
    # Enums
    OutputType,
    Platform,
    SessionStatus,
    FileStatus,
    ComplianceState,
    # Types
    EmotionalProfile,
    TechnicalRequirements,
    EffectDNA,
    GenerationOptions,
    ArticleResult,
    ComplianceReport,
    EffectMetadata,
    GeneratedEffect,
    # Config
    ForgeConfig,
)


# =============================================================================
# STAGES
# =============================================================================

from .analyzer import (
    LexicalAnalyzer,
    analyze,
    summarise_dna,
)

from .templates import (
    EffectTemplate,
    TEMPLATES,
    templates_for,
    get_template,
)

from .generator import (
    EffectGenerator,
    generate_code,
    select_template,
)

from .optimizer import (
    EffectOptimizer,
    optimize_code,
    OPTIMIZATION_TARGETS,
)

from .constitution import (
    ComplianceEngine,
    ARTICLES,
    score_compliance,
)

from .capabilities import apply_capabilities

from .pipeline import (
    EffectPipeline,
    extract_effect_description,
)


# =============================================================================
# SERVICES
# =============================================================================

from .adapters import (
    RecordStore,
    MemoryStore,
)

from .runner import GenerationRunner
from .monitor import PerformanceMonitor

from .errors import (
    ForgeError,
    ValidationError,
    PipelineError,
    ResourceNotFoundError,
)


__all__ = [
    # Core
    'OutputType',
    'Platform',
    'SessionStatus',
    'FileStatus',
    'ComplianceState',
    'EmotionalProfile',
    'TechnicalRequirements',
    'EffectDNA',
    'GenerationOptions',
    'ArticleResult',
    'ComplianceReport',
    'EffectMetadata',
    'GeneratedEffect',
    'ForgeConfig',
    # Stages
    'LexicalAnalyzer',
    'analyze',
    'summarise_dna',
    'EffectTemplate',
    'TEMPLATES',
    'templates_for',
    'get_template',
    'EffectGenerator',
    'generate_code',
    'select_template',
    'EffectOptimizer',
    'optimize_code',
    'OPTIMIZATION_TARGETS',
    'ComplianceEngine',
    'ARTICLES',
    'score_compliance',
    'apply_capabilities',
    'EffectPipeline',
    'extract_effect_description',
    # Services
    'RecordStore',
    'MemoryStore',
    'GenerationRunner',
    'PerformanceMonitor',
    'ForgeError',
    'ValidationError',
    'PipelineError',
    'ResourceNotFoundError',
    # Version
    '__version__',
]
