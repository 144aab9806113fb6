"""
Asynchronous task helpers for long-running background jobs (e.g. translation).
"""

from __future__ import annotations

import asyncio
import threading
import time
import uuid
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from grim_translator.logger import get_logger

import grim_translator.language_codes as lc
from grim_translator.ai.exceptions import TranslationCancelledError, TranslationError
from grim_translator.ai.service import AIService
from grim_translator.translation.progress import TranslationProgress

logger = get_logger(__name__)


@dataclass
class JobState:
    """In-memory representation of an asynchronous job."""

    job_id: str
    messages: Dict[str, str] = field(default_factory=dict)
    target_language: str = ""
    context: str = ""
    model_override: Optional[str] = None  # Optional specific model to use
    ai_provider: Optional[str] = None  # AI provider for this job
    cancel_requested: bool = False
    state: str = "pending"  # pending|running|completed|failed|cancelled
    created_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    progress: Dict[str, Any] = field(default_factory=dict)
    progress_history: List[Dict[str, Any]] = field(default_factory=list)  # History of all progress updates
    result: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    last_update: float = field(default_factory=time.time)

    def request_cancel(self):
        """Mark this job as requested for cancellation."""
        self.cancel_requested = True
        self.last_update = time.time()

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        # Source messages can be large and the client already has them
        payload.pop("messages")
        payload["total_messages"] = len(self.messages)
        return payload


_jobs: Dict[str, JobState] = {}
_jobs_lock = threading.Lock()
_JOB_RETENTION_SECONDS = 600  # Retain job info for 10 minutes after completion


def create_translation_job(
    messages: Dict[str, str],
    target_language: str,
    context: str = "",
    model_override: Optional[str] = None,
    ai_provider: Optional[str] = None,
) -> JobState:
    """
    Create and launch an asynchronous translation job.

    Args:
        messages: Message map to translate.
        target_language: Target language code.
        context: Optional product context.
        model_override: Optional specific model to use instead of default.
        ai_provider: Optional provider to use instead of the configured one.

    Returns:
        JobState for the new job (already registered and running in background).
    """
    job_id = uuid.uuid4().hex
    job_state = JobState(
        job_id=job_id,
        messages=dict(messages),
        target_language=target_language,
        context=context,
        model_override=model_override,
        ai_provider=ai_provider,
    )

    with _jobs_lock:
        _cleanup_jobs_locked()
        _jobs[job_id] = job_state

    thread = threading.Thread(
        target=_run_translation_job,
        args=(job_state,),
        name=f"translation-job-{job_id}",
        daemon=True,
    )
    thread.start()
    logger.info(
        "Translation job %s started (messages=%s, language=%s, provider=%s)",
        job_id,
        len(job_state.messages),
        target_language,
        ai_provider or "default",
    )
    return job_state


def get_job(job_id: str) -> Optional[JobState]:
    """Fetch a job by ID (if still retained)."""
    with _jobs_lock:
        job = _jobs.get(job_id)
        if job and job.finished_at and (time.time() - job.finished_at) > _JOB_RETENTION_SECONDS:
            # Expired; remove
            _jobs.pop(job_id, None)
            return None
        return job


def cancel_job(job_id: str) -> bool:
    """
    Request cancellation of a running job.

    Args:
        job_id: The job ID to cancel.

    Returns:
        True if job was found and cancellation requested, False otherwise.
    """
    with _jobs_lock:
        job = _jobs.get(job_id)
        if not job:
            return False
        if job.state in ("completed", "failed", "cancelled"):
            return False  # Already finished
        job.request_cancel()
        logger.info("Cancellation requested for job %s", job_id)
        return True


def serialize_job(job: JobState) -> Dict[str, Any]:
    """Convert JobState into JSON-safe dict."""
    with _jobs_lock:
        return job.to_dict()


def _run_translation_job(job: JobState):
    """Worker function executed in a background thread."""
    with _jobs_lock:
        job.state = "running"
        job.started_at = time.time()
        job.last_update = job.started_at
    language_name = lc.get_language_name(job.target_language)
    total_batches = 0

    try:
        service = AIService(model_override=job.model_override, provider_override=job.ai_provider)
        total_batches = -(-len(job.messages) // service.batch_size)

        def on_progress(current: int, total: int):
            progress = TranslationProgress(
                current=current,
                total=total,
                target_language=job.target_language,
                target_language_name=language_name,
                current_batch=len(job.progress_history) + 1,
                total_batches=total_batches,
            )
            with _jobs_lock:
                serialized = progress.to_dict()
                job.progress = serialized  # Latest state
                job.progress_history.append(serialized)  # Save to history
                job.last_update = time.time()

        def check_cancel():
            """Check if job cancellation was requested."""
            with _jobs_lock:
                return job.cancel_requested

        result = asyncio.run(service.translate(
            job.messages,
            job.target_language,
            job.context,
            on_progress=on_progress,
            cancel_check=check_cancel,
        ))

        with _jobs_lock:
            job.result = result
            job.state = "completed"
            job.finished_at = time.time()
            job.last_update = job.finished_at
        logger.info("Translation job %s finished (translated=%s)", job.job_id, len(result))
    except TranslationCancelledError as exc:
        with _jobs_lock:
            job.state = "cancelled"
            job.error_code = exc.code
            job.finished_at = time.time()
            job.last_update = job.finished_at
        logger.info("Translation job %s cancelled (processed=%s)", job.job_id, exc.details.get("processed", 0))
    except TranslationError as exc:
        _fail_job(job, exc, exc.code)
    except Exception as exc:
        _fail_job(job, exc, None)


def _fail_job(job: JobState, exc: Exception, error_code: Optional[str]):
    error_type = type(exc).__name__
    error_message = str(exc)
    with _jobs_lock:
        job.state = "failed"
        job.error = f"{error_type}: {error_message}"
        job.error_code = error_code
        job.finished_at = time.time()
        job.last_update = job.finished_at
    logger.exception(
        "✗ Translation job %s failed: %s: %s",
        job.job_id,
        error_type,
        error_message,
    )


def _cleanup_jobs_locked():
    """Remove completed jobs that exceeded retention period (call with lock held)."""
    now = time.time()
    expired = [
        job_id
        for job_id, job in _jobs.items()
        if job.finished_at and (now - job.finished_at) > _JOB_RETENTION_SECONDS
    ]
    for job_id in expired:
        _jobs.pop(job_id, None)
