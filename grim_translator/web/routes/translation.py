"""Translation API routes."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, jsonify, request

from grim_translator.logger import get_logger
from grim_translator.ai.exceptions import RateLimitError, TranslationError
from grim_translator.ai.service import AIService, validate_ai_config
from grim_translator.web.tasks import (
    create_translation_job,
    get_job,
    cancel_job,
    serialize_job,
)

translation_bp = Blueprint("translation", __name__)
logger = get_logger(__name__)


def _parse_translation_request(data: Any) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Validate a translation request body. Returns (params, error_message)."""
    if not isinstance(data, dict):
        return None, "Request body must be a JSON object"

    messages = data.get("messages")
    if not isinstance(messages, dict):
        return None, "messages must be an object of key/value strings"
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in messages.items()):
        return None, "messages must map string keys to string values"

    target_language = data.get("target_language")
    if not target_language or not isinstance(target_language, str):
        return None, "target_language is required"

    context = data.get("context") or ""
    if not isinstance(context, str):
        return None, "context must be a string"

    ai_provider = data.get("provider") or None
    model_override = data.get("model") or None

    # Parse provider if it's in "provider:model" format
    if ai_provider and isinstance(ai_provider, str) and ":" in ai_provider:
        provider_id, model_from_provider = ai_provider.split(":", 1)
        if model_override is None and model_from_provider:
            model_override = model_from_provider
        ai_provider = provider_id

    return {
        "messages": messages,
        "target_language": target_language,
        "context": context,
        "ai_provider": ai_provider,
        "model_override": model_override,
    }, None


def _error_response(e: TranslationError, status: int):
    error_response = {"error": str(e), "code": e.code or "translation_error"}
    if e.details:
        error_response["details"] = e.details
    return jsonify(error_response), status


@translation_bp.post("/translate")
def translate():
    """Translate a message map and return the result."""
    data = request.get_json(silent=True)
    params, error = _parse_translation_request(data)
    if error:
        return jsonify({"error": error}), 400

    # Validate AI configuration
    try:
        validate_ai_config(provider_override=params["ai_provider"])
    except TranslationError as e:
        logger.warning("AI configuration validation failed: %s", e)
        return _error_response(e, 400)

    service = AIService(model_override=params["model_override"], provider_override=params["ai_provider"])
    try:
        result = asyncio.run(service.translate(
            params["messages"],
            params["target_language"],
            params["context"],
        ))
    except RateLimitError as e:
        logger.warning("Translation rate limited: %s", e)
        return _error_response(e, 429)
    except TranslationError as e:
        logger.error("Translation failed: %s", e)
        return _error_response(e, 502)
    except Exception as e:
        logger.exception("Translation failed")
        return jsonify({"error": f"Translation failed: {str(e)}"}), 502

    return jsonify({"messages": result, "target_language": params["target_language"]})


@translation_bp.post("/translate/jobs")
def start_translation_job():
    """Start an asynchronous translation job."""
    data = request.get_json(silent=True)
    params, error = _parse_translation_request(data)
    if error:
        return jsonify({"error": error}), 400

    try:
        validate_ai_config(provider_override=params["ai_provider"])
    except TranslationError as e:
        logger.warning("AI configuration validation failed: %s", e)
        return _error_response(e, 400)

    try:
        job = create_translation_job(**params)
    except Exception as e:
        logger.exception("Failed to create translation job")
        return jsonify({"error": f"Failed to create translation job: {str(e)}"}), 500

    return jsonify({"job": serialize_job(job)}), 202


@translation_bp.get("/translate/jobs/<job_id>")
def get_translation_job(job_id: str):
    """Return status, progress and (when completed) the result of a job."""
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found or expired"}), 404

    return jsonify({"job": serialize_job(job)})


@translation_bp.post("/translate/jobs/<job_id>/cancel")
def cancel_translation_job(job_id: str):
    """Cancel a running translation job."""
    job = get_job(job_id)
    if not job:
        return jsonify({"error": "Job not found or expired"}), 404

    if cancel_job(job_id):
        return jsonify({"status": "cancellation_requested", "job_id": job_id})
    else:
        return jsonify({"error": "Job already finished and cannot be cancelled"}), 400
