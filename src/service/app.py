"""
FastAPI application exposing the analysis, chat and record endpoints.

Serves:
- POST /api/gemini          {prompt} → {output}
- POST /api/analyze         {image, filename, location?, soilType?} → analysis
- POST /api/report          {analysis} → {output, source}
- POST /api/voice-chat      {audio} → {transcription, reply}
- GET  /health
- POST /api/login, POST /api/activity, GET /api/admin/data
- POST /api/queries/submit, GET /api/queries/all

Endpoints are plain ``def`` functions: provider calls are blocking and run
in FastAPI's threadpool, one independent failover loop per request.
Error bodies carry the last provider error (already credential-free) and
never a key.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.analysis.runner import analyze_sample, answer_prompt, generate_report, voice_chat
from src.api_client.config import Settings, load_settings
from src.api_client.retry import (
    AllModelsExhausted,
    ConfigurationError,
    DeadlineExceeded,
    TranscriptionError,
)
from src.records import store

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class PromptRequest(BaseModel):
    prompt: Optional[str] = None


class AnalyzeRequest(BaseModel):
    image: Optional[str] = None
    filename: Optional[str] = None
    location: Optional[str] = None
    soilType: Optional[str] = None


class ReportRequest(BaseModel):
    analysis: dict[str, Any] = {}


class VoiceRequest(BaseModel):
    audio: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class ActivityRequest(BaseModel):
    userEmail: Optional[str] = None
    type: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    grains: Optional[int] = None


class QueryRequest(BaseModel):
    userId: Optional[str] = None
    userName: Optional[str] = None
    userEmail: Optional[str] = None
    subject: Optional[str] = None
    query: Optional[str] = None
    timestamp: Optional[str] = None


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(content=content, status_code=status_code)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application around one immutable :class:`Settings`.

    Args:
        settings: Process settings; loaded from the environment when omitted.

    Returns:
        Configured FastAPI instance (settings at ``app.state.settings``).
    """
    settings = settings or load_settings()

    app = FastAPI(
        title="SandGrainMapper API",
        description="Sand grain sample analysis backed by Gemini",
        version="0.1.0",
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def deadline() -> float:
        return time.monotonic() + settings.request_deadline

    # ── Generative endpoints ───────────────────────────────────────────────

    @app.post("/api/gemini")
    def gemini(body: PromptRequest):
        if not body.prompt:
            return _error(400, "Missing prompt")
        try:
            output = answer_prompt(body.prompt, settings, deadline())
        except ConfigurationError:
            return _error(500, "Server missing GEMINI API keys")
        except (AllModelsExhausted, DeadlineExceeded) as exc:
            logger.error("All Gemini attempts failed: %s", exc)
            return _error(500, "Failed to call Gemini API", str(exc))
        return {"output": output}

    @app.post("/api/analyze")
    def analyze(body: AnalyzeRequest):
        if not body.image:
            return _error(400, "Missing image")
        try:
            return analyze_sample(
                body.image,
                body.filename,
                body.location,
                body.soilType,
                settings,
                deadline=deadline(),
            )
        except ConfigurationError:
            return _error(500, "Server missing GEMINI API keys")

    @app.post("/api/report")
    def report(body: ReportRequest):
        output, source = generate_report(body.analysis, settings, deadline())
        return {"output": output, "source": source}

    @app.post("/api/voice-chat")
    def voice(body: VoiceRequest):
        if not body.audio:
            return _error(400, "Missing audio data")
        try:
            return voice_chat(body.audio, settings, deadline())
        except ValueError as exc:
            return _error(400, "Invalid audio data", str(exc))
        except ConfigurationError as exc:
            return _error(500, str(exc))
        except TranscriptionError as exc:
            logger.error("Transcription failed: %s", exc)
            return _error(500, "Transcription failed", str(exc))
        except (AllModelsExhausted, DeadlineExceeded) as exc:
            logger.error("Voice chat error: %s", exc)
            return _error(500, "Voice chat processing failed", str(exc))

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "time": datetime.now().isoformat(),
            "activeKeys": len(settings.credentials),
        }

    # ── Records ────────────────────────────────────────────────────────────

    @app.post("/api/login")
    def login(body: LoginRequest):
        if (
            settings.admin_enabled
            and body.email is not None
            and body.password is not None
            and secrets.compare_digest(body.email, settings.admin_user)
            and secrets.compare_digest(body.password, settings.admin_password)
        ):
            return {"user": {
                "id": "admin_001",
                "name": "Administrator",
                "email": settings.admin_user,
                "role": "Admin",
                "status": "Active",
            }}
        try:
            user = store.record_login(settings.data_file, body.email, body.name, body.picture)
        except store.RecordValidationError as exc:
            return _error(400, str(exc))
        return {"user": user}

    @app.post("/api/activity")
    def activity(body: ActivityRequest):
        activity_id = store.log_activity(
            settings.data_file, body.userEmail, body.type, body.details, body.grains
        )
        return {"status": "ok", "activityId": activity_id}

    @app.get("/api/admin/data")
    def admin():
        return store.admin_data(settings.data_file)

    @app.post("/api/queries/submit")
    def submit(body: QueryRequest):
        try:
            query_id = store.submit_query(
                settings.data_file,
                body.subject,
                body.query,
                user_id=body.userId,
                user_name=body.userName,
                user_email=body.userEmail,
                timestamp=body.timestamp,
            )
        except store.RecordValidationError as exc:
            return _error(400, str(exc))
        return {"status": "success", "queryId": query_id}

    @app.get("/api/queries/all")
    def queries():
        return {"queries": store.list_queries(settings.data_file)}

    return app
