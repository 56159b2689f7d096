"""
EffectForge Core - Type Definitions v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Core data types for the effect generation pipeline.
All types are plain Python dataclasses, JSON-serialisable through
to_dict()/from_dict(). Dictionary keys use the camelCase names the
web client consumes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Set
from enum import Enum
import uuid


# =============================================================================
# ENUMS
# =============================================================================

class OutputType(Enum):
    """Kind of code an effect is generated as."""
    JAVASCRIPT = "javascript"
    CSS = "css"
    AFTEREFFECTS = "aftereffects"
    ALL = "all"               # One effect carrying all three code fields

    @classmethod
    def parse(cls, value: Any) -> "OutputType":
        """Parse a type name. Unknown names fall back to JAVASCRIPT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.JAVASCRIPT

    def targets(self) -> List["OutputType"]:
        """Concrete code types this output type expands to."""
        if self is OutputType.ALL:
            return [OutputType.JAVASCRIPT, OutputType.CSS, OutputType.AFTEREFFECTS]
        return [self]


class Platform(Enum):
    """Target platform used by the optimizer."""
    WEB = "web"
    MOBILE = "mobile"
    DESKTOP = "desktop"


class SessionStatus(Enum):
    """Status of a generation session."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class FileStatus(Enum):
    """Status of an uploaded file."""
    UPLOADED = "uploaded"
    PARSING = "parsing"
    PARSED = "parsed"
    ERROR = "error"


class ComplianceState(Enum):
    """Where an effect sits in the scoring/enforcement cycle."""
    UNSCORED = "unscored"
    SCORED = "scored"
    ENFORCED = "enforced"
    FINAL = "final"


# Code field name on the persisted record, per concrete output type
CODE_FIELDS = {
    OutputType.JAVASCRIPT: "javascriptCode",
    OutputType.CSS: "cssCode",
    OutputType.AFTEREFFECTS: "afterEffectsCode",
}

# Persisted compliance flag name, per article id
COMPLIANCE_FLAGS = {
    1: "performanceCompliant",
    2: "intelligenceAdaptive",
    3: "universalCompatible",
    4: "perfectExperience",
    5: "visualImpact",
    6: "addictiveEcosystem",
    7: "competitiveDomination",
}


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


# =============================================================================
# DNA
# =============================================================================

@dataclass
class EmotionalProfile:
    """Fraction of prompt tokens matching each mood word list, each in [0, 1]."""
    energy: float = 0.0
    complexity: float = 0.0
    elegance: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "energy": self.energy,
            "complexity": self.complexity,
            "elegance": self.elegance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmotionalProfile":
        return cls(
            energy=float(data.get("energy", 0.0)),
            complexity=float(data.get("complexity", 0.0)),
            elegance=float(data.get("elegance", 0.0)),
        )


@dataclass
class TechnicalRequirements:
    """Performance targets estimated from the prompt."""
    performance: float = 60.0     # Target FPS estimate, floor 30
    memory: float = 256.0         # MB estimate, floor 64
    compatibility: List[str] = field(default_factory=lambda: ["web", "mobile", "desktop"])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "performance": self.performance,
            "memory": self.memory,
            "compatibility": list(self.compatibility),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TechnicalRequirements":
        return cls(
            performance=float(data.get("performance", 60.0)),
            memory=float(data.get("memory", 256.0)),
            compatibility=list(data.get("compatibility", ["web", "mobile", "desktop"])),
        )


@dataclass
class EffectDNA:
    """
    Feature record derived from a free-text prompt.

    Recomputed per request, never persisted on its own; a copy travels
    with the GeneratedEffect that it produced.
    """
    primary_concepts: List[str] = field(default_factory=list)
    emotional_profile: EmotionalProfile = field(default_factory=EmotionalProfile)
    technical_requirements: TechnicalRequirements = field(default_factory=TechnicalRequirements)
    confidence_score: float = 0.0
    constitution_compliance: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primaryConcepts": list(self.primary_concepts),
            "emotionalProfile": self.emotional_profile.to_dict(),
            "technicalRequirements": self.technical_requirements.to_dict(),
            "confidenceScore": self.confidence_score,
            "constitutionCompliance": self.constitution_compliance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EffectDNA":
        return cls(
            primary_concepts=list(data.get("primaryConcepts", [])),
            emotional_profile=EmotionalProfile.from_dict(data.get("emotionalProfile", {})),
            technical_requirements=TechnicalRequirements.from_dict(
                data.get("technicalRequirements", {})
            ),
            confidence_score=float(data.get("confidenceScore", 0.0)),
            constitution_compliance=bool(data.get("constitutionCompliance", False)),
        )


# =============================================================================
# GENERATION OPTIONS
# =============================================================================

@dataclass
class GenerationOptions:
    """Per-request generation options."""
    type: OutputType = OutputType.JAVASCRIPT
    target_fps: int = 60
    max_memory: int = 512
    enable_constitution: bool = True
    platform: Platform = Platform.WEB

    # Accepted ranges
    MIN_FPS = 30
    MAX_FPS = 120
    MIN_MEMORY = 64
    MAX_MEMORY = 1024

    def validate(self, min_fps: int = None, max_fps: int = None,
                 min_memory: int = None, max_memory: int = None) -> None:
        """
        Raise a ValidationError subclass if any option is out of range.

        Called by the request layer before a pipeline run starts;
        the pipeline itself never validates. Bounds default to the
        class constants.
        """
        from forge_engine.errors import OutOfRangeError

        min_fps = self.MIN_FPS if min_fps is None else min_fps
        max_fps = self.MAX_FPS if max_fps is None else max_fps
        min_memory = self.MIN_MEMORY if min_memory is None else min_memory
        max_memory = self.MAX_MEMORY if max_memory is None else max_memory

        if not min_fps <= self.target_fps <= max_fps:
            raise OutOfRangeError("targetFps", self.target_fps, min_fps, max_fps)
        if not min_memory <= self.max_memory <= max_memory:
            raise OutOfRangeError("maxMemory", self.max_memory, min_memory, max_memory)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "targetFps": self.target_fps,
            "maxMemory": self.max_memory,
            "enableConstitution": self.enable_constitution,
            "platform": self.platform.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: "GenerationOptions" = None) -> "GenerationOptions":
        """
        Build options from a request body.

        Accepts camelCase (client) or snake_case keys. Missing keys take
        their value from `defaults`.
        """
        from forge_engine.errors import ValidationError

        base = defaults or cls()

        def pick(camel: str, snake: str, fallback):
            if camel in data and data[camel] is not None:
                return data[camel]
            if snake in data and data[snake] is not None:
                return data[snake]
            return fallback

        platform_value = pick("platform", "platform", base.platform.value)
        try:
            platform = Platform(str(platform_value).lower())
        except ValueError:
            raise ValidationError("platform", f"must be one of: web, mobile, desktop (got {platform_value!r})")

        try:
            target_fps = int(pick("targetFps", "target_fps", base.target_fps))
            max_memory = int(pick("maxMemory", "max_memory", base.max_memory))
        except (TypeError, ValueError):
            raise ValidationError("targetFps/maxMemory", "must be numbers")

        return cls(
            type=OutputType.parse(pick("type", "type", base.type.value)),
            target_fps=target_fps,
            max_memory=max_memory,
            enable_constitution=bool(pick("enableConstitution", "enable_constitution",
                                          base.enable_constitution)),
            platform=platform,
        )


# =============================================================================
# COMPLIANCE
# =============================================================================

@dataclass
class ArticleResult:
    """Score for a single constitution article."""
    article_id: int
    name: str
    score: int                    # 0-100
    compliant: bool               # score >= article pass bar
    details: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "score": self.score,
            "compliant": self.compliant,
            "details": self.details,
        }
        if self.recommendations:
            d["recommendations"] = list(self.recommendations)
        return d


@dataclass
class ComplianceReport:
    """
    Read model over an effect: per-article results plus weighted total.

    Recomputed on demand, never persisted as its own record.
    """
    articles: List[ArticleResult]
    total_score: int

    def article(self, article_id: int) -> Optional[ArticleResult]:
        for result in self.articles:
            if result.article_id == article_id:
                return result
        return None

    @property
    def flags(self) -> Dict[str, bool]:
        """Persisted flag name -> compliant, for all seven articles."""
        return {
            COMPLIANCE_FLAGS[r.article_id]: r.compliant
            for r in self.articles
        }

    @property
    def failing(self) -> List[int]:
        """Ids of articles below their pass bar."""
        return [r.article_id for r in self.articles if not r.compliant]

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"totalScore": self.total_score}
        d.update(self.flags)
        d["details"] = {r.name: r.to_dict() for r in self.articles}
        return d


# =============================================================================
# GENERATED EFFECT
# =============================================================================

@dataclass
class EffectMetadata:
    """Performance estimates and the last compliance score."""
    render_time: float = 0.0      # ms estimate
    memory_usage: float = 0.0     # MB estimate
    fps: int = 60                 # Declared target FPS
    constitution_score: int = 0   # 0-100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "renderTime": self.render_time,
            "memoryUsage": self.memory_usage,
            "fps": self.fps,
            "constitutionScore": self.constitution_score,
        }


@dataclass
class GeneratedEffect:
    """
    Working unit of the pipeline.

    Created by the orchestrator, rewritten in place by the optimizer and
    the compliance engine, then turned into a persisted Effect record.
    Compliance flags are derived from the last ComplianceReport and have
    no setter.
    """
    id: str
    name: str
    description: str
    type: OutputType
    category: str
    dna: EffectDNA
    code: Dict[OutputType, str] = field(default_factory=dict)
    metadata: EffectMetadata = field(default_factory=EffectMetadata)
    tags: List[str] = field(default_factory=list)
    generated_by: str = "AI"
    generation_prompt: Optional[str] = None
    template: Optional[str] = None
    applied_capabilities: Set[str] = field(default_factory=set)
    compliance_state: ComplianceState = ComplianceState.UNSCORED
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)
    _report: Optional[ComplianceReport] = field(default=None, repr=False)

    @classmethod
    def create(cls, name: str, description: str, type: OutputType, category: str,
               dna: EffectDNA, fps: int = 60, **kwargs) -> "GeneratedEffect":
        """Factory method with auto-generated ID and timestamps."""
        now = _now()
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            type=type,
            category=category,
            dna=dna,
            metadata=EffectMetadata(fps=fps),
            created_at=now,
            updated_at=now,
            **kwargs,
        )

    # -------------------------------------------------------------------------
    # Code access
    # -------------------------------------------------------------------------

    def code_for(self, output_type: OutputType) -> str:
        """Code for one concrete type ('' when absent)."""
        return self.code.get(output_type) or ""

    def set_code(self, output_type: OutputType, text: str) -> None:
        self.code[output_type] = text
        self.updated_at = _now()

    @property
    def primary_code(self) -> str:
        """First non-empty code field in javascript, css, aftereffects order."""
        for output_type in (OutputType.JAVASCRIPT, OutputType.CSS, OutputType.AFTEREFFECTS):
            text = self.code_for(output_type)
            if text:
                return text
        return ""

    @property
    def platform_count(self) -> int:
        """How many of the three code fields carry code."""
        return sum(1 for t in CODE_FIELDS if self.code_for(t))

    # -------------------------------------------------------------------------
    # Compliance
    # -------------------------------------------------------------------------

    @property
    def compliance(self) -> Optional[ComplianceReport]:
        """Report from the last scoring call, if any."""
        return self._report

    @property
    def compliance_flags(self) -> Dict[str, bool]:
        if self._report is None:
            return {name: False for name in COMPLIANCE_FLAGS.values()}
        return self._report.flags

    def record_scoring(self, report: ComplianceReport) -> None:
        """Store a fresh report; keeps score and flags in step."""
        self._report = report
        self.metadata.constitution_score = report.total_score
        self.updated_at = _now()

    # -------------------------------------------------------------------------
    # Serialisation
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the persisted Effect record shape."""
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "type": self.type.value,
            "tags": list(self.tags),
            "template": self.template,
            "renderTime": self.metadata.render_time,
            "memoryUsage": self.metadata.memory_usage,
            "targetFps": self.metadata.fps,
            "constitutionScore": self.metadata.constitution_score,
            "generatedBy": self.generated_by,
            "generationPrompt": self.generation_prompt,
            "appliedCapabilities": sorted(self.applied_capabilities),
            "complianceState": self.compliance_state.value,
            "dna": self.dna.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        for output_type, field_name in CODE_FIELDS.items():
            d[field_name] = self.code.get(output_type)
        d.update(self.compliance_flags)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedEffect":
        """
        Rebuild a working effect from a persisted record.

        Compliance flags are not restored; score the result again to
        obtain them.
        """
        code = {
            output_type: data[field_name]
            for output_type, field_name in CODE_FIELDS.items()
            if data.get(field_name)
        }
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            type=OutputType.parse(data.get("type", "javascript")),
            category=data.get("category", ""),
            dna=EffectDNA.from_dict(data.get("dna") or {}),
            code=code,
            metadata=EffectMetadata(
                render_time=float(data.get("renderTime", 0) or 0),
                memory_usage=float(data.get("memoryUsage", 0) or 0),
                fps=int(data.get("targetFps", 60) or 60),
                constitution_score=int(data.get("constitutionScore", 0) or 0),
            ),
            tags=list(data.get("tags", [])),
            generated_by=data.get("generatedBy", "AI"),
            generation_prompt=data.get("generationPrompt"),
            template=data.get("template"),
            applied_capabilities=set(data.get("appliedCapabilities", [])),
            created_at=data.get("createdAt") or _now(),
            updated_at=data.get("updatedAt") or _now(),
        )


# =============================================================================
# MODULE EXPORTS
# =============================================================================

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
]
