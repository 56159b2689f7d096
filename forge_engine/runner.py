"""
EffectForge Engine - Background Runner v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Runs generation and file-parsing jobs off the request thread.

A generation request creates a Session record in `processing` state and
returns immediately. The job then either persists an Effect and marks
the Session `completed`, or marks it `error` with the failure message.
This module is the only place pipeline failures are caught.
"""

import json
import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from .adapters.base import RecordStore, KIND_EFFECT, KIND_FILE, KIND_SESSION
from .core.types import FileStatus, GenerationOptions, SessionStatus
from .errors import FileNotParsedError, ForgeError, ResourceNotFoundError
from .pipeline import EffectPipeline

logger = logging.getLogger(__name__)


Spawn = Callable[..., Any]


def spawn_thread(target: Callable, *args) -> threading.Thread:
    """Run target(*args) on a daemon thread."""
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


class GenerationRunner:
    """
    Background job runner for the HTTP layer.

    Args:
        store: Record store for sessions, effects and files
        pipeline: Pipeline used for every generation
        spawn: Callable(target, *args) that schedules a job. Defaults to
            a daemon thread; pass a synchronous callable to run jobs
            inline.

    Usage:
        runner = GenerationRunner(MemoryStore(), EffectPipeline())
        session = runner.start_generation("glowing particle burst", options)
        ...
        store.get("session", session["id"])["status"]   # "completed"
    """

    def __init__(self, store: RecordStore, pipeline: Optional[EffectPipeline] = None,
                 spawn: Optional[Spawn] = None):
        self.store = store
        self.pipeline = pipeline or EffectPipeline()
        self.spawn = spawn or spawn_thread

    # =========================================================================
    # GENERATION
    # =========================================================================

    def start_generation(self, prompt: str, options: GenerationOptions) -> Dict[str, Any]:
        """
        Create a processing Session and schedule the pipeline run.

        Returns:
            The Session record as created
        """
        session = self.store.create(KIND_SESSION, {
            "prompt": prompt,
            "status": SessionStatus.PROCESSING.value,
            "response": None,
            "effectId": None,
            "processingTime": None,
            "constitutionScore": None,
            "completedAt": None,
            "options": options.to_dict(),
        })
        logger.info(
            f"Generation session started ({options.type.value})",
            extra={"session_id": session["id"]},
        )
        self.spawn(self.run_generation, session["id"], prompt, options)
        return session

    def run_generation(self, session_id: str, prompt: str, options: GenerationOptions) -> None:
        """
        Run one generation job to completion.

        On success the Effect is persisted and the Session carries its id,
        score and a JSON copy of the record. On any failure no Effect is
        persisted and the Session carries the error message.
        """
        start = time.time()
        try:
            effect = self.pipeline.generate_from_prompt(prompt, options)
            record = self.store.create(KIND_EFFECT, self.pipeline.to_effect_record(effect))
        except Exception as e:
            elapsed = _elapsed_ms(start)
            logger.exception(
                f"Generation failed after {elapsed}ms",
                extra={"session_id": session_id, "duration_ms": elapsed},
            )
            self.store.update(KIND_SESSION, session_id, {
                "status": SessionStatus.ERROR.value,
                "response": str(e),
                "processingTime": elapsed,
                "completedAt": _now(),
            })
            return

        elapsed = _elapsed_ms(start)
        self.store.update(KIND_SESSION, session_id, {
            "status": SessionStatus.COMPLETED.value,
            "response": json.dumps(record),
            "effectId": record["id"],
            "processingTime": elapsed,
            "constitutionScore": record["constitutionScore"],
            "completedAt": _now(),
        })
        logger.info(
            f"Generation completed: {record['name']} score={record['constitutionScore']}",
            extra={
                "session_id": session_id,
                "effect_id": record["id"],
                "duration_ms": elapsed,
            },
        )

    def start_generation_from_file(self, file_id: str, options: GenerationOptions) -> Dict[str, Any]:
        """
        Start a generation whose prompt comes from a parsed upload.

        Raises:
            ResourceNotFoundError: Unknown file id
            FileNotParsedError: File text is not available yet
        """
        file_record = self.store.get(KIND_FILE, file_id)
        if file_record is None:
            raise ResourceNotFoundError("file", file_id)
        if file_record.get("status") != FileStatus.PARSED.value:
            raise FileNotParsedError(file_id, file_record.get("status"))

        prompt = self.pipeline.extract_effect_description(file_record.get("parsedContent"))
        return self.start_generation(prompt, options)

    # =========================================================================
    # FILE PARSING
    # =========================================================================

    def register_upload(self, original_name: str, mime_type: str, data: bytes) -> Dict[str, Any]:
        """
        Create an `uploaded` File record and schedule text extraction.

        Returns:
            The File record as created
        """
        file_record = self.store.create(KIND_FILE, {
            "originalName": original_name,
            "filename": f"{uuid4()}_{original_name}",
            "mimetype": mime_type,
            "size": len(data),
            "status": FileStatus.UPLOADED.value,
            "parsedContent": None,
            "errorMessage": None,
        })
        self.spawn(self.run_file_parse, file_record["id"], data, mime_type)
        return file_record

    def run_file_parse(self, file_id: str, data: bytes, mime_type: str) -> None:
        """Extract text for an uploaded file and record the outcome."""
        from ingestion import describe_text, extract_text

        self.store.update(KIND_FILE, file_id, {"status": FileStatus.PARSING.value})
        try:
            text = extract_text(data, mime_type)
        except Exception as e:
            message = e.user_message if isinstance(e, ForgeError) else str(e)
            logger.warning(
                f"File parsing failed: {e}",
                extra={"file_id": file_id},
            )
            self.store.update(KIND_FILE, file_id, {
                "status": FileStatus.ERROR.value,
                "errorMessage": message,
            })
            return

        stats = describe_text(text)
        self.store.update(KIND_FILE, file_id, {
            "status": FileStatus.PARSED.value,
            "parsedContent": text,
            "textStats": stats.to_dict(),
        })
        logger.info(
            f"File parsed: {stats.word_count} words ({stats.language})",
            extra={"file_id": file_id},
        )


__all__ = ["GenerationRunner", "spawn_thread"]
