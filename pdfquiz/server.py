"""
HTTP Microservice
=================
Flask-based HTTP API for the upload and quiz pipelines.

Endpoints:
    POST   /api/uploads   → Extract + normalize an uploaded PDF
    POST   /api/quiz      → Generate a quiz widget from text
    POST   /api/ingest    → Upload + quiz in one call
    GET    /api/health    → Health check
    GET    /api/info      → Service version info

Error responses carry a short user-facing message only; internal detail is
logged.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from . import __version__
from .engine import EngineConfig, QuizEngine
from .errors import ExtractionFailed, InputRejected, PipelineError
from .models import ProcessedUpload

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

MISSING_FILE_MESSAGE = "Expected a PDF file upload under the `file` field."
EMPTY_TEXT_MESSAGE = "Quiz generation requires non-empty text."
MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB


def create_app(
    engine: Optional[QuizEngine] = None,
    config: Optional[dict] = None,
) -> Flask:
    """Create and configure the Flask app."""
    if config:
        app.config.update(config)

    if not app.config.get("MAX_CONTENT_LENGTH"):
        app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
    app.config["QUIZ_ENGINE"] = engine or QuizEngine(EngineConfig.from_env())
    return app


def _engine() -> QuizEngine:
    engine = app.config.get("QUIZ_ENGINE")
    if engine is None:
        engine = QuizEngine(EngineConfig.from_env())
        app.config["QUIZ_ENGINE"] = engine
    return engine


def _read_upload() -> Optional[tuple[bytes, str, str]]:
    """Return (data, filename, mimetype) of the `file` field, if present."""
    file = request.files.get("file")
    if file is None or not file.filename:
        return None
    return file.read(), file.filename, file.mimetype or ""


def _upload_payload(document_id: str, upload: ProcessedUpload) -> dict:
    payload = upload.to_json_dict()
    # Raw text stays server-side; clients render sections
    payload.pop("text", None)
    payload.setdefault("message", None)
    payload.setdefault("ocr", None)
    return {"documentId": document_id, **payload}


# ─── Health / Info ────────────────────────────────────────────────────────────


@app.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "pdf-quiz",
        "version": __version__,
    })


@app.route("/api/info", methods=["GET"])
def info():
    """Service version and capability info."""
    engine = _engine()
    return jsonify({
        "version": __version__,
        "engine": "PyMuPDF",
        "ocr": engine.upload_service.ocr_provider is not None,
        "capabilities": [
            "text_extraction",
            "ocr_fallback",
            "section_normalization",
            "quiz_generation",
        ],
        "supported_formats": ["pdf"],
    })


# ─── Upload Endpoint ──────────────────────────────────────────────────────────


@app.route("/api/uploads", methods=["POST"])
def upload_pdf():
    """
    Process an uploaded PDF (multipart/form-data, field `file`).

    Returns metadata, normalized sections and the OCR outcome.
    """
    upload = _read_upload()
    if upload is None:
        return jsonify({"error": MISSING_FILE_MESSAGE}), 400

    data, filename, content_type = upload
    try:
        processed = _engine().process_upload(data, filename, content_type)
    except (InputRejected, ExtractionFailed) as e:
        logger.warning(f"[uploads] Rejected {filename!r}: {e}")
        return jsonify({"error": e.user_message}), 400

    return jsonify(_upload_payload(str(uuid.uuid4()), processed))


# ─── Quiz Endpoint ────────────────────────────────────────────────────────────


@app.route("/api/quiz", methods=["POST"])
def generate_quiz():
    """Generate a quiz from JSON `{"text": ...}`."""
    body = request.get_json(silent=True)
    text = body.get("text") if isinstance(body, dict) else None

    if not isinstance(text, str) or not text.strip():
        return jsonify({"error": EMPTY_TEXT_MESSAGE}), 400

    try:
        quiz = _engine().generate_quiz(text)
    except PipelineError as e:
        logger.error(f"[quiz] Failed to generate quiz: {e}")
        return jsonify({"error": e.user_message}), 502

    return jsonify(quiz.to_json_dict())


# ─── Ingest Endpoint ──────────────────────────────────────────────────────────


@app.route("/api/ingest", methods=["POST"])
def ingest_pdf():
    """
    Process an uploaded PDF and generate a quiz from it in one request.

    A quiz failure keeps the upload result and adds `quizError`.
    """
    upload = _read_upload()
    if upload is None:
        return jsonify({"error": MISSING_FILE_MESSAGE}), 400

    data, filename, content_type = upload
    try:
        result = _engine().ingest(data, filename, content_type)
    except (InputRejected, ExtractionFailed) as e:
        logger.warning(f"[ingest] Rejected {filename!r}: {e}")
        return jsonify({"error": e.user_message}), 400

    payload = _upload_payload(result.document_id, result.upload)
    if result.quiz is not None:
        payload["quiz"] = result.quiz.to_json_dict()
    if result.quiz_error:
        payload["quizError"] = result.quiz_error
    return jsonify(payload)


# ─── Run Server ──────────────────────────────────────────────────────────────


def run_server(
    host: str = "0.0.0.0",
    port: int = 5000,
    debug: bool = False,
):
    """Start the microservice server."""
    create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_server(debug=True)
