import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

import store
from deps import generation_http_error, get_orchestrator, get_user_id
from gemini import config
from gemini.errors import GenerationError
from gemini.fallback import Sleep
from gemini.orchestrator import GenerationOrchestrator
from gemini.tasks import generate_answer, generate_explanation, generate_interview_questions
from models.session import InterviewSession, QuestionAnswer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])

FAILED_ANSWER = "Failed to generate answer. Please try again later."


# ---------- Request / Response schemas ----------

class CreateSessionRequest(BaseModel):
    job_role: str = Field(min_length=1)
    experience_level: str = Field(min_length=1)
    tech_stack: list[str] = Field(min_length=1)


class SessionSummary(BaseModel):
    session_id: str
    job_role: str
    experience_level: str
    tech_stack: list[str]
    question_count: int
    created_at: str     # ISO-8601


class PinnedQuestion(BaseModel):
    session_id: str
    index: int
    job_role: str
    question: QuestionAnswer


class NotesRequest(BaseModel):
    notes: str


# ---------- Answer batch ----------

async def answer_questions(
    orchestrator: GenerationOrchestrator,
    questions: list[str],
    job_role: str,
    experience_level: str,
    tech_stack: list[str],
    delay_seconds: float,
    sleep: Sleep,
) -> list[QuestionAnswer]:
    """
    Generate answers one at a time with a fixed pause between calls.

    A failed answer is replaced by FAILED_ANSWER and the batch continues.
    """
    results: list[QuestionAnswer] = []

    for i, question in enumerate(questions):
        if i > 0 and delay_seconds > 0:
            logger.info("Waiting %.0fs before next answer request...", delay_seconds)
            await sleep(delay_seconds)

        logger.info("Generating answer %d/%d...", i + 1, len(questions))
        try:
            answer = await generate_answer(orchestrator, question, job_role, experience_level, tech_stack)
        except GenerationError as exc:
            logger.error("Error generating answer for question %d: %s", i + 1, exc)
            answer = FAILED_ANSWER

        results.append(QuestionAnswer(question=question, answer=answer))

    return results


def _get_session(session_id: str, user_id: str) -> InterviewSession:
    session = store.get_owned(store.sessions, session_id, user_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _get_question(session: InterviewSession, index: int) -> QuestionAnswer:
    if index < 0 or index >= len(session.questions):
        raise HTTPException(status_code=404, detail="Question not found")
    return session.questions[index]


# ---------- Endpoints ----------

@router.post("/sessions", response_model=InterviewSession, status_code=201)
async def create_session(
    body: CreateSessionRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    Generates interview questions, then answers them sequentially.
    Individual answer failures do not abort the session.
    """
    try:
        questions = await generate_interview_questions(
            orchestrator, body.job_role, body.experience_level, body.tech_stack
        )
    except GenerationError as exc:
        logger.error("Error generating questions: %s", exc)
        raise generation_http_error(exc, "generate interview questions")

    answered = await answer_questions(
        orchestrator,
        questions,
        body.job_role,
        body.experience_level,
        body.tech_stack,
        delay_seconds=config.ANSWER_DELAY_SECONDS,
        sleep=orchestrator.sleep,
    )

    session = InterviewSession(
        session_id=uuid.uuid4().hex,
        user_id=user_id,
        job_role=body.job_role,
        experience_level=body.experience_level,
        tech_stack=body.tech_stack,
        questions=answered,
    )
    store.sessions[session.session_id] = session
    return session


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(user_id: str = Depends(get_user_id)):
    """Newest first, without question bodies."""
    owned = [s for s in store.sessions.values() if s.user_id == user_id]
    owned.sort(key=lambda s: s.created_at, reverse=True)
    return [
        SessionSummary(
            session_id=s.session_id,
            job_role=s.job_role,
            experience_level=s.experience_level,
            tech_stack=s.tech_stack,
            question_count=len(s.questions),
            created_at=s.created_at.isoformat() + "Z",
        )
        for s in owned
    ]


@router.get("/sessions/{session_id}", response_model=InterviewSession)
async def get_session(session_id: str, user_id: str = Depends(get_user_id)):
    return _get_session(session_id, user_id)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, user_id: str = Depends(get_user_id)):
    _get_session(session_id, user_id)
    del store.sessions[session_id]
    return Response(status_code=204)


@router.post("/sessions/{session_id}/questions/{index}/explain", response_model=QuestionAnswer)
async def explain_question(
    session_id: str,
    index: int,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Generates (or regenerates) a beginner-friendly explanation for one Q&A."""
    item = _get_question(_get_session(session_id, user_id), index)

    try:
        item.explanation = await generate_explanation(orchestrator, item.question, item.answer)
    except GenerationError as exc:
        logger.error("Error generating explanation: %s", exc)
        raise generation_http_error(exc, "generate explanation")

    return item


@router.patch("/sessions/{session_id}/questions/{index}/pin", response_model=QuestionAnswer)
async def toggle_pin(session_id: str, index: int, user_id: str = Depends(get_user_id)):
    item = _get_question(_get_session(session_id, user_id), index)
    item.is_pinned = not item.is_pinned
    return item


@router.patch("/sessions/{session_id}/questions/{index}/notes", response_model=QuestionAnswer)
async def update_notes(
    session_id: str,
    index: int,
    body: NotesRequest,
    user_id: str = Depends(get_user_id),
):
    item = _get_question(_get_session(session_id, user_id), index)
    item.notes = body.notes
    return item


@router.get("/pinned", response_model=list[PinnedQuestion])
async def list_pinned(user_id: str = Depends(get_user_id), job_role: Optional[str] = None):
    pinned: list[PinnedQuestion] = []
    for session in store.sessions.values():
        if session.user_id != user_id:
            continue
        if job_role and session.job_role != job_role:
            continue
        for i, item in enumerate(session.questions):
            if item.is_pinned:
                pinned.append(
                    PinnedQuestion(session_id=session.session_id, index=i, job_role=session.job_role, question=item)
                )
    return pinned
