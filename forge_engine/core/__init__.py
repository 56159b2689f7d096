"""
EffectForge Core - Types and configuration

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root
"""

from .types import (
    OutputType,
    Platform,
    SessionStatus,
    FileStatus,
    ComplianceState,
    CODE_FIELDS,
    COMPLIANCE_FLAGS,
    EmotionalProfile,
    TechnicalRequirements,
    EffectDNA,
    GenerationOptions,
    ArticleResult,
    ComplianceReport,
    EffectMetadata,
    GeneratedEffect,
)
from .config import ForgeConfig

__all__ = [
    "OutputType",
    "Platform",
    "SessionStatus",
    "FileStatus",
    "ComplianceState",
    "CODE_FIELDS",
    "COMPLIANCE_FLAGS",
    "EmotionalProfile",
    "TechnicalRequirements",
    "EffectDNA",
    "GenerationOptions",
    "ArticleResult",
    "ComplianceReport",
    "EffectMetadata",
    "GeneratedEffect",
    "ForgeConfig",
]
