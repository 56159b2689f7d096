"""
EffectForge Engine - Pipeline Orchestrator v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Sequences the generation stages for one request:

    prompt -> DNA -> base code -> optimised code -> scored/enforced code

Stages are strictly sequential and share nothing between requests.
The collaborators are passed in explicitly; each is stateless, so one
instance of each can serve every request.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from .analyzer import LexicalAnalyzer
from .constitution import ComplianceEngine
from .core.config import ForgeConfig
from .core.types import ComplianceReport, GeneratedEffect, GenerationOptions
from .errors import PipelineError
from .generator import EffectGenerator
from .logging_utils import Timer
from .optimizer import EffectOptimizer

logger = logging.getLogger(__name__)


def extract_effect_description(content: Optional[str], max_lines: int = 3,
                               max_chars: int = 200) -> str:
    """
    Reduce parsed file text to a short prompt.

    First `max_lines` non-empty lines joined by spaces, cut to `max_chars`.
    """
    if not content:
        return ""
    lines = [line for line in content.split("\n") if line.strip()]
    return " ".join(lines[:max_lines])[:max_chars]


class EffectPipeline:
    """
    Orchestrates analysis, generation, optimisation and compliance.

    Usage:
        pipeline = EffectPipeline()
        effect = pipeline.generate_from_prompt(
            "A fast explosive particle burst",
            GenerationOptions(max_memory=256),
        )
        record = pipeline.to_effect_record(effect)
    """

    def __init__(
        self,
        analyzer: Optional[LexicalAnalyzer] = None,
        generator: Optional[EffectGenerator] = None,
        optimizer: Optional[EffectOptimizer] = None,
        constitution: Optional[ComplianceEngine] = None,
        config: Optional[ForgeConfig] = None,
    ):
        self.config = config or ForgeConfig()
        self.analyzer = analyzer or LexicalAnalyzer()
        self.generator = generator or EffectGenerator()
        self.optimizer = optimizer or EffectOptimizer(self.config)
        self.constitution = constitution or ComplianceEngine()

    @contextmanager
    def _stage(self, name: str):
        """Time a stage and wrap any failure in PipelineError."""
        try:
            with Timer(logger, name):
                yield
        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(name, str(e)) from e

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def generate_from_prompt(self, prompt: Optional[str],
                             options: Optional[GenerationOptions] = None) -> GeneratedEffect:
        """
        Run the full pipeline for a text prompt.

        Options are assumed valid; validation happens before this call.
        """
        options = options or self.config.generation_defaults()
        prompt = prompt or ""

        with self._stage("analysis"):
            dna = self.analyzer.analyze(prompt)

        with self._stage("generation"):
            name = self.generator.name_for(dna)
            generated = [
                (target, *self.generator.generate_with_template(dna, target, options, name))
                for target in options.type.targets()
            ]
            _, primary_template, _ = generated[0]
            effect = GeneratedEffect.create(
                name=name,
                description=prompt,
                type=options.type,
                category=primary_template.category,
                dna=dna,
                fps=options.target_fps,
                tags=list(dna.primary_concepts),
                generation_prompt=prompt,
                template=primary_template.name,
            )
            for target, _, code in generated:
                effect.set_code(target, code)

        with self._stage("optimization"):
            self.optimizer.optimize_effect(effect, options)

        with self._stage("compliance"):
            if options.enable_constitution:
                report = self.constitution.enforce_compliance(effect)
            else:
                report = self.constitution.finalize_without_enforcement(effect)

        logger.info(
            f"Generated {effect.name} ({effect.type.value}) score={report.total_score}",
            extra={"effect_id": effect.id},
        )
        return effect

    def generate_from_file(self, parsed_text: Optional[str],
                           options: Optional[GenerationOptions] = None) -> GeneratedEffect:
        """Reduce file text to a prompt, then run generate_from_prompt()."""
        prompt = self.extract_effect_description(parsed_text)
        return self.generate_from_prompt(prompt, options)

    def extract_effect_description(self, content: Optional[str]) -> str:
        return extract_effect_description(
            content,
            max_lines=self.config.description_max_lines,
            max_chars=self.config.description_max_chars,
        )

    # =========================================================================
    # RECORDS
    # =========================================================================

    @staticmethod
    def to_effect_record(effect: GeneratedEffect) -> Dict[str, Any]:
        """Persisted Effect record for a finished effect."""
        return effect.to_dict()

    def score_record(self, record: Dict[str, Any]) -> ComplianceReport:
        """Read-only compliance report for a stored Effect record."""
        return self.constitution.score(GeneratedEffect.from_dict(record))


__all__ = ["EffectPipeline", "extract_effect_description"]
