"""
EffectForge Core - Configuration v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Engine configuration for EffectForge processing.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, Any, List, Optional
import json
import logging
import os
from pathlib import Path

import yaml

from .types import GenerationOptions, OutputType, Platform

logger = logging.getLogger(__name__)


# Environment variable prefix for overrides (FORGE_TARGET_FPS=90 etc.)
ENV_PREFIX = "FORGE_"


@dataclass
class ForgeConfig:
    """
    Configuration for EffectForge processing.

    All limits are tuneable. Defaults match the behaviour of the web
    client's generation form.
    """

    # =========================================================================
    # GENERATION DEFAULTS
    # =========================================================================

    default_type: str = "javascript"
    default_target_fps: int = 60
    default_max_memory: int = 512             # MB
    default_enable_constitution: bool = True
    default_platform: str = "web"

    # Option bounds (inclusive)
    min_fps: int = 30
    max_fps: int = 120
    min_memory: int = 64
    max_memory: int = 1024

    # =========================================================================
    # FILE INPUT
    # =========================================================================

    max_upload_mb: int = 50
    allowed_mime_types: List[str] = field(default_factory=lambda: [
        "text/plain",
        "text/markdown",
        "application/json",
        "text/csv",
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/rtf",
        "text/rtf",
        "application/xml",
        "text/xml",
    ])

    # Prompt reduction for file-driven generation
    description_max_lines: int = 3
    description_max_chars: int = 200

    # =========================================================================
    # OPTIMIZER
    # =========================================================================

    mobile_particle_ceiling: int = 50
    desktop_particle_ceiling: int = 200
    low_memory_threshold: int = 512           # Rewrites apply below this (MB)

    # =========================================================================
    # MONITOR
    # =========================================================================

    # Alert thresholds: (warning, critical)
    cpu_thresholds: List[float] = field(default_factory=lambda: [70.0, 85.0])          # percent
    memory_thresholds: List[float] = field(default_factory=lambda: [1024.0, 1536.0])   # MB
    response_thresholds: List[float] = field(default_factory=lambda: [200.0, 500.0])   # ms
    error_rate_thresholds: List[float] = field(default_factory=lambda: [5.0, 10.0])    # percent
    max_alerts: int = 100
    metrics_window: int = 100                 # Request samples kept
    metrics_history: int = 288                # Stored snapshots kept

    # =========================================================================
    # GENERAL
    # =========================================================================

    log_level: str = "INFO"
    log_json: bool = False
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60 per minute"
    rate_limit_expensive: str = "10 per minute"
    rate_limit_upload: str = "20 per minute"

    # =========================================================================
    # METHODS
    # =========================================================================

    def generation_defaults(self) -> GenerationOptions:
        """Default options used to fill gaps in a request body."""
        return GenerationOptions(
            type=OutputType.parse(self.default_type),
            target_fps=self.default_target_fps,
            max_memory=self.default_max_memory,
            enable_constitution=self.default_enable_constitution,
            platform=Platform(self.default_platform),
        )

    def validate_options(self, options: GenerationOptions) -> None:
        """Check options against this config's bounds."""
        options.validate(
            min_fps=self.min_fps,
            max_fps=self.max_fps,
            min_memory=self.min_memory,
            max_memory=self.max_memory,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForgeConfig":
        """Create config from dictionary. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, path: Path) -> None:
        """Save config to JSON or YAML file, by suffix."""
        path = Path(path)
        with open(path, 'w') as f:
            if path.suffix in (".yaml", ".yml"):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Dict[str, str] = None) -> "ForgeConfig":
        """
        Load config from a YAML/JSON file, then apply FORGE_* overrides.

        Args:
            path: Optional config file (.yaml, .yml or .json)
            environ: Environment mapping (defaults to os.environ)
        """
        data: Dict[str, Any] = {}
        if path is not None:
            path = Path(path)
            with open(path, 'r') as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
            logger.info(f"Loaded configuration from {path}")

        config = cls.from_dict(data)
        config.apply_env(os.environ if environ is None else environ)
        return config

    def apply_env(self, environ: Dict[str, str]) -> None:
        """Override fields from FORGE_<FIELD_NAME> variables."""
        for f in fields(self):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            current = getattr(self, f.name)
            if isinstance(current, bool):
                value: Any = raw.strip().lower() in ("1", "true", "yes", "on")
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            elif isinstance(current, list):
                items = [item.strip() for item in raw.split(",") if item.strip()]
                # Keep numeric lists numeric
                if current and isinstance(current[0], float):
                    value = [float(item) for item in items]
                else:
                    value = items
            else:
                value = raw
            setattr(self, f.name, value)

    @classmethod
    def for_testing(cls) -> "ForgeConfig":
        """Create config for tests (no rate limiting, debug logging)."""
        return cls(
            rate_limit_enabled=False,
            log_level="DEBUG",
        )


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = ["ForgeConfig", "ENV_PREFIX"]
