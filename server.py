"""
EffectForge Server - Flask API for the EffectForge Engine

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

REST API for:
- Prompt and file driven effect generation (background sessions)
- Effect library browsing and deletion
- File upload and text extraction
- Constitution scoring and library compliance summary
- System metrics and health
"""

import os
import time
import logging
from pathlib import Path
from datetime import datetime
from functools import wraps

from flask import Flask, request, jsonify, g
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from werkzeug.utils import secure_filename

from forge_engine import (
    __version__,
    ForgeConfig,
    GenerationOptions,
    EffectPipeline,
    ComplianceEngine,
    MemoryStore,
    GenerationRunner,
    PerformanceMonitor,
    OPTIMIZATION_TARGETS,
    summarise_dna,
)
from forge_engine.adapters import KIND_EFFECT, KIND_FILE, KIND_SESSION
from forge_engine.constitution import ENFORCEMENT_THRESHOLD
from forge_engine.errors import (
    ForgeError,
    EmptyFileError,
    FileTooLargeError,
    MissingFieldError,
    ResourceNotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)
from forge_engine.logging_utils import (
    setup_logging,
    set_request_id,
    get_request_id,
    log_request,
)
from forge_engine.rate_limiter import (
    init_rate_limiter,
    get_rate_limit_status,
    rate_limit_expensive,
    rate_limit_upload,
    rate_limit_health,
)
from ingestion import get_supported_mime_types

# =============================================================================
# CONFIGURATION
# =============================================================================

forge_config = ForgeConfig.load(os.environ.get("FORGE_CONFIG"))


class Config:
    """Server configuration."""
    DATA_DIR = Path(os.environ.get("FORGE_DATA_DIR", "./_data"))
    UPLOAD_DIR = DATA_DIR / "uploads"

    MAX_CONTENT_LENGTH = forge_config.max_upload_mb * 1024 * 1024
    ALLOWED_MIME_TYPES = set(forge_config.allowed_mime_types)

    RECENT_SESSIONS = 10


# =============================================================================
# APP SETUP
# =============================================================================

setup_logging(
    level=forge_config.log_level,
    json_output=forge_config.log_json,
    log_file=os.environ.get("FORGE_LOG_FILE"),
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)
CORS(app)

# Before any route: the limit decorators bind the limiter when applied
init_rate_limiter(app, forge_config)

Config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

store = MemoryStore()
pipeline = EffectPipeline(config=forge_config)
runner = GenerationRunner(store, pipeline)
monitor = PerformanceMonitor(forge_config, store)


# =============================================================================
# UTILITIES
# =============================================================================

def api_response(data=None, error=None, status=200):
    """Standard API response wrapper."""
    response = {
        "success": error is None,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }
    if data is not None:
        response["data"] = data
    if error is not None:
        response["error"] = error
    return jsonify(response), status


def require_json(f):
    """Decorator to require JSON body."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not request.is_json:
            return api_response(error="JSON body required", status=400)
        return f(*args, **kwargs)
    return decorated


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("body", "must be a JSON object")
    return data


def parse_options(data: dict) -> GenerationOptions:
    """Generation options from a request body, validated against config bounds."""
    options = GenerationOptions.from_dict(data, forge_config.generation_defaults())
    forge_config.validate_options(options)
    return options


def get_or_404(kind: str, record_id: str) -> dict:
    record = store.get(kind, record_id)
    if record is None:
        raise ResourceNotFoundError(kind, record_id)
    return record


def generation_ack(session: dict):
    return api_response({
        "sessionId": session["id"],
        "message": "Effect generation started",
        "estimatedTime": "30-60 seconds",
    }, status=202)


# =============================================================================
# REQUEST HOOKS & ERROR HANDLERS
# =============================================================================

@app.before_request
def start_request_timer():
    g.start_time = time.time()
    set_request_id(request.headers.get("X-Request-ID"))


@app.after_request
def track_request(response):
    start = getattr(g, "start_time", None)
    if start is not None:
        monitor.track_request((time.time() - start) * 1000, error=response.status_code >= 400)
    response.headers["X-Request-ID"] = get_request_id()
    return response


@app.errorhandler(ForgeError)
def handle_forge_error(e):
    """Known failures carry their own status and user-facing message."""
    logger.warning(
        f"{type(e).__name__}: {e}",
        extra={"path": request.path, "status_code": e.status_code},
    )
    return api_response(error=e.user_message, status=e.status_code)


@app.errorhandler(RequestEntityTooLarge)
def handle_too_large(e):
    size_mb = (request.content_length or 0) / (1024 * 1024)
    error = FileTooLargeError(size_mb, forge_config.max_upload_mb)
    return api_response(error=error.user_message, status=error.status_code)


@app.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return api_response(error=e.description, status=e.code)
    logger.exception(f"Unhandled error on {request.method} {request.path}")
    return api_response(error="Internal server error", status=500)


# =============================================================================
# HEALTH & INFO
# =============================================================================

@app.route("/api/health", methods=["GET"])
@rate_limit_health
def health():
    """Health check endpoint."""
    return api_response({
        "status": "healthy",
        "version": __version__,
        "effects": store.count(KIND_EFFECT),
        "sessions": store.count(KIND_SESSION),
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Server info endpoint."""
    return api_response({
        "name": "EffectForge Server",
        "version": __version__,
        "generationDefaults": forge_config.generation_defaults().to_dict(),
        "supportedMimeTypes": get_supported_mime_types(),
        "rateLimit": get_rate_limit_status(),
        "endpoints": [
            "/api/health",
            "/api/info",
            "/api/ai/analyze",
            "/api/ai/optimize",
            "/api/effects/generate",
            "/api/effects/generate-from-file",
            "/api/effects",
            "/api/effects/<id>",
            "/api/files/upload",
            "/api/files",
            "/api/files/<id>",
            "/api/sessions/recent",
            "/api/sessions/<id>",
            "/api/constitution/validate",
            "/api/constitution/articles",
            "/api/constitution/summary",
            "/api/system/metrics",
            "/api/system/metrics/history",
            "/api/system/health",
            "/api/system/alerts/<id>/resolve",
        ],
    })


# =============================================================================
# ANALYSIS & OPTIMISATION
# =============================================================================

@app.route("/api/ai/analyze", methods=["POST"])
@require_json
def analyze_content():
    """
    Analyse a description into EffectDNA.

    Body: {"content": "..."}
    """
    content = json_body().get("content")
    if not content:
        raise MissingFieldError("content")

    dna = pipeline.analyzer.analyze(content)
    result = dna.to_dict()
    result["summary"] = summarise_dna(dna)
    return api_response(result)


@app.route("/api/ai/optimize", methods=["POST"])
@rate_limit_expensive
@require_json
def optimize_code():
    """
    Rewrite code for one optimisation target.

    Body: {"code": "...", "target": "performance|memory|quality"}
    """
    data = json_body()
    code = data.get("code")
    target = data.get("target")
    if not code:
        raise MissingFieldError("code")
    if not target:
        raise MissingFieldError("target")
    if target not in OPTIMIZATION_TARGETS:
        raise ValidationError("target", f"must be one of: {', '.join(OPTIMIZATION_TARGETS)}")

    return api_response({"optimizedCode": pipeline.optimizer.optimize_code(code, target)})


# =============================================================================
# GENERATION
# =============================================================================

@app.route("/api/effects/generate", methods=["POST"])
@rate_limit_expensive
@log_request(logger)
@require_json
def generate_effect():
    """
    Start a background generation.

    Body: {"prompt", "type", "targetFps", "maxMemory", "enableConstitution", "platform"}
    """
    data = json_body()
    prompt = (data.get("prompt") or "").strip()
    if not prompt:
        raise MissingFieldError("prompt")

    session = runner.start_generation(prompt, parse_options(data))
    return generation_ack(session)


@app.route("/api/effects/generate-from-file", methods=["POST"])
@rate_limit_expensive
@log_request(logger)
@require_json
def generate_effect_from_file():
    """
    Start a background generation from a parsed upload.

    Body: {"fileId", ...generation options}
    """
    data = json_body()
    file_id = data.get("fileId")
    if not file_id:
        raise MissingFieldError("fileId")

    session = runner.start_generation_from_file(file_id, parse_options(data))
    return generation_ack(session)


# =============================================================================
# EFFECT LIBRARY
# =============================================================================

@app.route("/api/effects", methods=["GET"])
def list_effects():
    """List effects. Query: search, category, type ('all' disables a filter)."""
    effects = store.search_effects(
        search=request.args.get("search"),
        category=request.args.get("category"),
        effect_type=request.args.get("type"),
    )
    return api_response({"effects": effects, "count": len(effects)})


@app.route("/api/effects/<effect_id>", methods=["GET"])
def get_effect(effect_id):
    return api_response(get_or_404(KIND_EFFECT, effect_id))


@app.route("/api/effects/<effect_id>", methods=["DELETE"])
def delete_effect(effect_id):
    if not store.delete(KIND_EFFECT, effect_id):
        raise ResourceNotFoundError(KIND_EFFECT, effect_id)
    return api_response({"deleted": effect_id})


# =============================================================================
# FILES
# =============================================================================

@app.route("/api/files/upload", methods=["POST"])
@rate_limit_upload
@log_request(logger)
def upload_files():
    """
    Upload one or more files (multipart field `files`).

    Every file is checked before any is stored; text extraction runs
    in the background.
    """
    uploads = [f for f in request.files.getlist("files") if f.filename]
    if not uploads:
        return api_response(error="No files uploaded", status=400)

    accepted = []
    for upload in uploads:
        if upload.mimetype not in Config.ALLOWED_MIME_TYPES:
            raise UnsupportedFileTypeError(upload.mimetype, sorted(Config.ALLOWED_MIME_TYPES))
        data = upload.read()
        if not data:
            raise EmptyFileError()
        accepted.append((secure_filename(upload.filename) or "upload", upload.mimetype, data))

    records = []
    for original_name, mime_type, data in accepted:
        record = runner.register_upload(original_name, mime_type, data)
        (Config.UPLOAD_DIR / record["filename"]).write_bytes(data)
        records.append(record)

    return api_response({
        "files": records,
        "message": f"{len(records)} files uploaded successfully",
    })


@app.route("/api/files", methods=["GET"])
def list_files():
    files = store.list(KIND_FILE, status=request.args.get("status"))
    return api_response({"files": files, "count": len(files)})


@app.route("/api/files/<file_id>", methods=["GET"])
def get_file(file_id):
    return api_response(get_or_404(KIND_FILE, file_id))


@app.route("/api/files/<file_id>", methods=["DELETE"])
def delete_file(file_id):
    record = get_or_404(KIND_FILE, file_id)
    store.delete(KIND_FILE, file_id)
    stored = Config.UPLOAD_DIR / record["filename"]
    if stored.exists():
        stored.unlink()
    return api_response({"deleted": file_id})


# =============================================================================
# SESSIONS
# =============================================================================

@app.route("/api/sessions/recent", methods=["GET"])
def recent_sessions():
    sessions = store.recent(KIND_SESSION, Config.RECENT_SESSIONS)
    return api_response({"sessions": sessions, "count": len(sessions)})


@app.route("/api/sessions/<session_id>", methods=["GET"])
def get_session(session_id):
    return api_response(get_or_404(KIND_SESSION, session_id))


# =============================================================================
# CONSTITUTION
# =============================================================================

@app.route("/api/constitution/validate", methods=["POST"])
@log_request(logger)
@require_json
def validate_effect():
    """
    Score a stored effect without changing it.

    Body: {"effectId": "..."}
    """
    effect_id = json_body().get("effectId")
    if not effect_id:
        raise MissingFieldError("effectId")

    record = get_or_404(KIND_EFFECT, effect_id)
    return api_response(pipeline.score_record(record).to_dict())


@app.route("/api/constitution/articles", methods=["GET"])
def list_articles():
    return api_response({
        "articles": ComplianceEngine.get_articles(),
        "enforcementThreshold": ENFORCEMENT_THRESHOLD,
    })


@app.route("/api/constitution/summary", methods=["GET"])
def constitution_summary():
    """System-wide compliance over every stored effect."""
    return api_response(pipeline.constitution.summarise_library(store.list(KIND_EFFECT)))


# =============================================================================
# SYSTEM
# =============================================================================

@app.route("/api/system/metrics", methods=["GET"])
def system_metrics():
    return api_response(monitor.get_current_metrics())


@app.route("/api/system/metrics/history", methods=["GET"])
def system_metrics_history():
    limit = request.args.get("limit", 24, type=int)
    history = monitor.get_history(limit)
    return api_response({"metrics": history, "count": len(history)})


@app.route("/api/system/health", methods=["GET"])
@rate_limit_health
def system_health():
    status = monitor.get_health_status()
    status["alerts"] = monitor.get_active_alerts()
    return api_response(status)


@app.route("/api/system/alerts/<alert_id>/resolve", methods=["POST"])
def resolve_alert(alert_id):
    if not monitor.resolve_alert(alert_id):
        raise ResourceNotFoundError("alert", alert_id)
    return api_response({"resolved": alert_id})


# =============================================================================
# MAIN
# =============================================================================

def create_app():
    """Application factory for WSGI servers."""
    return app


if __name__ == "__main__":
    port = int(os.environ.get("FORGE_PORT", 5100))
    debug = os.environ.get("FORGE_DEBUG", "false").lower() == "true"

    print(f"\n[FORGE] Server starting on http://localhost:{port}")
    print(f"        Data: {Config.DATA_DIR}")
    print(f"        Rate limiting: {'on' if forge_config.rate_limit_enabled else 'off'}")
    print()

    app.run(host="0.0.0.0", port=port, debug=debug)
