"""FastAPI server exposing the student quiz portal."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import Cookie, Depends, FastAPI, HTTPException, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field
import uvicorn

from quiz_portal.constants.about import APP_NAME, APP_VERSION
from quiz_portal.constants.network_constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    SESSION_COOKIE,
    SESSION_COOKIE_MAX_AGE_SECONDS,
)
from quiz_portal.core.errors import NotFoundError, QuizImportError, QuizUnavailableError
from quiz_portal.core.markdown_math_renderer import renderer
from quiz_portal.core.models import SessionPhase, SessionSnapshot
from quiz_portal.core.services.quiz_catalog import QuizCatalog
from quiz_portal.core.services.quiz_session import QuizSession
from quiz_portal.core.services.session_registry import SessionRegistry
from quiz_portal.server.student_page import STUDENT_PAGE_HTML

logger = logging.getLogger(__name__)


class StartPayload(BaseModel):
    """Payload schema for starting a quiz attempt."""

    student_id: str = Field(min_length=1, max_length=64)


class CursorPayload(BaseModel):
    """Payload schema for moving to another question."""

    index: int


class AnswerPayload(BaseModel):
    """Payload schema for selecting an option."""

    option_label: str = Field(min_length=1, max_length=1)


def snapshot_to_payload(snapshot: SessionSnapshot) -> dict[str, object]:
    """Serialize a session snapshot for the student page."""
    question = snapshot.current_question
    current: dict[str, object] | None = None
    if question is not None:
        current = {
            "id": question.id,
            "prompt_html": renderer.render_fragment(question.prompt),
            "options": [
                {"label": label, "html": renderer.render_inline(text)}
                for label, text in zip(question.option_labels(), question.options)
            ],
            "selected": snapshot.answers.get(question.id),
        }
    result = None
    if snapshot.receipt is not None:
        result = {
            "scored": snapshot.receipt.is_scored,
            "score": snapshot.receipt.score,
            "total": snapshot.receipt.total,
        }
    return {
        "phase": snapshot.phase.value,
        "quiz_id": snapshot.quiz_id,
        "cursor": snapshot.cursor,
        "remaining_seconds": snapshot.remaining_seconds,
        "question_count": len(snapshot.questions),
        "unanswered_count": snapshot.unanswered_count,
        "answers": dict(snapshot.answers),
        "navigator": [
            {"id": q.id, "answered": q.id in snapshot.answers} for q in snapshot.questions
        ],
        "current_question": current,
        "error_message": snapshot.error_message,
        "result": result,
    }


def _get_catalog_dependency(catalog: QuizCatalog):
    def dependency() -> QuizCatalog:
        return catalog

    return dependency


def _get_registry_dependency(registry: SessionRegistry):
    def dependency() -> SessionRegistry:
        return registry

    return dependency


def create_api_app(catalog: QuizCatalog, registry: SessionRegistry) -> FastAPI:
    """Create a FastAPI application wired to the provided catalog and sessions.

    Every route touching a session is ``async`` so it runs on the event loop
    that also drives the countdowns.
    """

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        registry.close_all()

    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, lifespan=lifespan)
    catalog_dep = _get_catalog_dependency(catalog)
    registry_dep = _get_registry_dependency(registry)

    async def require_session(
        session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> QuizSession:
        session = sessions.get_session(session_token)
        if session is None:
            raise HTTPException(status_code=404, detail="No quiz in progress.")
        return session

    @app.get("/", response_class=HTMLResponse)
    def serve_student_page() -> str:
        return STUDENT_PAGE_HTML

    @app.get("/api/quizzes")
    def list_quizzes(quizzes: QuizCatalog = Depends(catalog_dep)) -> list[dict[str, object]]:
        return [
            {
                "id": quiz.quiz_id,
                "title": quiz.title,
                "time_limit_minutes": quiz.time_limit_minutes,
                "starts_at": quiz.starts_at.isoformat() if quiz.starts_at else None,
                "ends_at": quiz.ends_at.isoformat() if quiz.ends_at else None,
            }
            for quiz in quizzes.list_quizzes()
        ]

    @app.post("/api/quizzes/{quiz_id}/session", status_code=201)
    async def start_quiz(
        quiz_id: str,
        payload: StartPayload,
        response: Response,
        session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
        quizzes: QuizCatalog = Depends(catalog_dep),
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        student_id = payload.student_id.strip()
        try:
            quiz = await asyncio.to_thread(quizzes.check_availability, quiz_id, student_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except QuizUnavailableError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        token, session = sessions.create_session(student_id, token=session_token)
        try:
            await session.load(quiz_id, quiz.time_limit_minutes)
        except NotFoundError as exc:
            sessions.discard(token)
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except QuizImportError as exc:
            sessions.discard(token)
            logger.error("Question bank for quiz %s is malformed: %s", quiz_id, exc)
            raise HTTPException(status_code=500, detail="The question bank could not be read.") from exc
        except Exception as exc:
            sessions.discard(token)
            logger.exception("Loading quiz %s failed", quiz_id)
            raise HTTPException(status_code=500, detail="The quiz could not be loaded.") from exc

        response.set_cookie(
            key=SESSION_COOKIE,
            value=token,
            max_age=SESSION_COOKIE_MAX_AGE_SECONDS,
            samesite="lax",
            httponly=True,
        )
        return snapshot_to_payload(session.snapshot())

    @app.get("/api/session")
    async def get_session(session: QuizSession = Depends(require_session)) -> dict[str, object]:
        return snapshot_to_payload(session.snapshot())

    @app.put("/api/session/cursor")
    async def move_cursor(
        payload: CursorPayload,
        session: QuizSession = Depends(require_session),
    ) -> dict[str, object]:
        session.set_cursor(payload.index)
        return snapshot_to_payload(session.snapshot())

    @app.put("/api/session/answers/{question_id}")
    async def select_answer(
        question_id: str,
        payload: AnswerPayload,
        session: QuizSession = Depends(require_session),
    ) -> dict[str, object]:
        question = next((q for q in session.questions if q.id == question_id), None)
        if question is None:
            raise HTTPException(status_code=404, detail=f"Unknown question '{question_id}'.")
        label = payload.option_label.upper()
        if label not in question.option_labels():
            raise HTTPException(status_code=422, detail=f"'{label}' is not an option of this question.")
        session.set_answer(question_id, label)
        return snapshot_to_payload(session.snapshot())

    @app.post("/api/session/submit")
    async def submit_quiz(session: QuizSession = Depends(require_session)) -> dict[str, object]:
        task = session.submit()
        if task is None:
            raise HTTPException(status_code=409, detail=session.error_message or "Nothing to submit.")
        # A dropped connection must not cancel the submission itself.
        await asyncio.shield(task)
        snapshot = session.snapshot()
        if snapshot.phase is SessionPhase.ERROR:
            raise HTTPException(status_code=502, detail=snapshot.error_message)
        return snapshot_to_payload(snapshot)

    @app.delete("/api/session", status_code=204)
    async def leave_quiz(
        session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> Response:
        if session_token is not None:
            sessions.discard(session_token)
        response = Response(status_code=204)
        response.delete_cookie(SESSION_COOKIE)
        return response

    return app


def run_api_server(
    app: FastAPI,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the portal until interrupted."""
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    server.run()
