import logging
import math
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import BaseModel, Field

import store
from deps import generation_http_error, get_orchestrator, get_user_id
from gemini.errors import GenerationError
from gemini.orchestrator import GenerationOrchestrator
from gemini.tasks import (
    explain_concept,
    generate_chat_response,
    generate_document_summary,
    generate_flashcards,
    generate_quiz_questions,
)
from models.learning import ChatMessage, Document, Flashcard, Quiz, QuizQuestion

logger = logging.getLogger(__name__)

router = APIRouter(tags=["learning"])

CHAT_APOLOGY = (
    "I apologize, but I encountered an error while processing your question. "
    "Please try again."
)
CHAT_CONTEXT_MESSAGES = 10
MIN_DOCUMENT_CHARS = 100
MAX_QUIZ_QUESTIONS = 20
RECENT_ACTIVITY_LIMIT = 10
UNANSWERED = -1


# ---------- Request / Response schemas ----------

class CreateDocumentRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    page_count: int = Field(default=0, ge=0)


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    user_message: ChatMessage
    assistant_message: ChatMessage


class SummaryResponse(BaseModel):
    summary: str


class ExplainRequest(BaseModel):
    concept: str


class ExplainResponse(BaseModel):
    concept: str
    explanation: str


class GenerateRequest(BaseModel):
    count: Optional[int] = Field(default=None, ge=1, le=50)


class GenerateQuizRequest(GenerateRequest):
    count: Optional[int] = Field(default=None, ge=1, le=MAX_QUIZ_QUESTIONS)


class QuizSummary(BaseModel):
    quiz_id: str
    document_id: str
    title: str
    total_questions: int
    score: Optional[int] = None
    created_at: datetime


class QuizView(BaseModel):
    quiz_id: str
    document_id: str
    title: str
    questions: list[dict]
    score: Optional[int] = None
    user_answers: Optional[list[Optional[int]]] = None


class SubmitQuizRequest(BaseModel):
    answers: list[Optional[int]]


class SubmitQuizResponse(BaseModel):
    score: int
    correct: int
    total: int
    quiz: QuizView


class ActivityItem(BaseModel):
    type: str                   # "document" | "flashcard" | "quiz"
    action: str
    timestamp: datetime
    item_id: str
    item_name: str


class ProgressResponse(BaseModel):
    total_documents: int
    total_flashcards: int
    total_quizzes: int
    recent_activity: list[ActivityItem]


# ---------- Helpers ----------

def _get_document(document_id: str, user_id: str) -> Document:
    document = store.get_owned(store.documents, document_id, user_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


def _require_text(document: Document, purpose: str) -> str:
    content = document.content.strip()
    if len(content) < MIN_DOCUMENT_CHARS:
        raise HTTPException(
            status_code=400,
            detail=f"Document does not contain enough text to generate {purpose}",
        )
    return content


def _get_quiz(quiz_id: str, user_id: str) -> Quiz:
    quiz = store.get_owned(store.quizzes, quiz_id, user_id)
    if quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


def _quiz_view(quiz: Quiz) -> QuizView:
    """Correct answers and explanations stay hidden until the quiz is submitted."""
    completed = quiz.score is not None
    questions = []
    for q in quiz.questions:
        item = {"question": q.question, "options": q.options}
        if completed:
            item["correct_answer"] = q.correct_answer
            item["explanation"] = q.explanation
        questions.append(item)
    return QuizView(
        quiz_id=quiz.quiz_id,
        document_id=quiz.document_id,
        title=quiz.title,
        questions=questions,
        score=quiz.score,
        user_answers=quiz.user_answers,
    )


def normalize_answers(answers: list[Optional[int]], total: int) -> list[int]:
    """One answer per question; missing or null answers become UNANSWERED, extras are dropped."""
    padded = list(answers[:total]) + [None] * (total - len(answers))
    return [UNANSWERED if a is None else a for a in padded]


def score_quiz(questions: list[QuizQuestion], answers: list[Optional[int]]) -> tuple[int, int]:
    """Returns (correct_count, percentage rounded half up)."""
    correct = sum(
        1 for i, q in enumerate(questions)
        if i < len(answers) and answers[i] == q.correct_answer
    )
    total = len(questions)
    if not total:
        return correct, 0
    return correct, math.floor(correct * 100 / total + 0.5)


# ---------- Documents ----------

@router.post("/documents", response_model=Document, status_code=201)
async def create_document(body: CreateDocumentRequest, user_id: str = Depends(get_user_id)):
    """Registers a document from text already extracted by the upload pipeline."""
    document = Document(
        document_id=uuid.uuid4().hex,
        user_id=user_id,
        title=body.title,
        content=body.content,
        page_count=body.page_count,
    )
    store.documents[document.document_id] = document
    return document


@router.get("/documents", response_model=list[Document])
async def list_documents(user_id: str = Depends(get_user_id)):
    owned = [d for d in store.documents.values() if d.user_id == user_id]
    owned.sort(key=lambda d: d.created_at, reverse=True)
    return owned


@router.get("/documents/{document_id}", response_model=Document)
async def get_document(document_id: str, user_id: str = Depends(get_user_id)):
    return _get_document(document_id, user_id)


@router.delete("/documents/{document_id}", status_code=204)
async def delete_document(document_id: str, user_id: str = Depends(get_user_id)):
    """Deletes the document with its chat history, flashcards and quizzes."""
    _get_document(document_id, user_id)
    del store.documents[document_id]
    store.chat_messages.pop(document_id, None)
    for table in (store.flashcards, store.quizzes):
        for key in [k for k, v in table.items() if v.document_id == document_id]:
            del table[key]
    return Response(status_code=204)


# ---------- Chat ----------

@router.post("/documents/{document_id}/chat", response_model=ChatResponse)
async def send_chat_message(
    document_id: str,
    body: ChatRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    Answers a question about the document. On generation failure the
    assistant reply is a fixed apology instead of an error response.
    """
    if not body.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    document = _get_document(document_id, user_id)
    history = store.chat_messages.setdefault(document_id, [])
    recent = [{"role": m.role, "content": m.content} for m in history[-CHAT_CONTEXT_MESSAGES:]]

    user_message = ChatMessage(role="user", content=body.message.strip())
    history.append(user_message)

    try:
        reply = await generate_chat_response(orchestrator, user_message.content, document.content, recent)
    except GenerationError as exc:
        logger.error("Error generating chat response: %s", exc)
        reply = CHAT_APOLOGY

    assistant_message = ChatMessage(role="assistant", content=reply)
    history.append(assistant_message)

    return ChatResponse(user_message=user_message, assistant_message=assistant_message)


@router.get("/documents/{document_id}/chat", response_model=list[ChatMessage])
async def get_chat_history(document_id: str, user_id: str = Depends(get_user_id)):
    _get_document(document_id, user_id)
    return store.chat_messages.get(document_id, [])


# ---------- Summary / concepts ----------

@router.post("/documents/{document_id}/summary", response_model=SummaryResponse)
async def summarize_document(
    document_id: str,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Returns the stored summary, generating it on first request."""
    document = _get_document(document_id, user_id)
    if document.summary:
        return SummaryResponse(summary=document.summary)

    content = _require_text(document, "a summary")
    try:
        document.summary = await generate_document_summary(orchestrator, content)
    except GenerationError as exc:
        logger.error("Error generating summary: %s", exc)
        raise generation_http_error(exc, "generate summary")

    return SummaryResponse(summary=document.summary)


@router.post("/documents/{document_id}/explain", response_model=ExplainResponse)
async def explain_document_concept(
    document_id: str,
    body: ExplainRequest,
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    concept = body.concept.strip()
    if not concept:
        raise HTTPException(status_code=400, detail="Concept is required")

    document = _get_document(document_id, user_id)
    try:
        explanation = await explain_concept(orchestrator, concept, document.content)
    except GenerationError as exc:
        logger.error("Error explaining concept: %s", exc)
        raise generation_http_error(exc, "explain concept")

    return ExplainResponse(concept=concept, explanation=explanation)


# ---------- Flashcards ----------

@router.post("/documents/{document_id}/flashcards/generate", response_model=list[Flashcard], status_code=201)
async def create_flashcards(
    document_id: str,
    body: Optional[GenerateRequest] = Body(default=None),
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    document = _get_document(document_id, user_id)
    content = _require_text(document, "flashcards")
    count = body.count if body and body.count else 10

    try:
        drafts = await generate_flashcards(orchestrator, content, count)
    except GenerationError as exc:
        logger.error("Error generating flashcards: %s", exc)
        raise generation_http_error(exc, "generate flashcards")

    created = []
    for draft in drafts:
        card = Flashcard(
            flashcard_id=uuid.uuid4().hex,
            user_id=user_id,
            document_id=document_id,
            front=draft.front,
            back=draft.back,
        )
        store.flashcards[card.flashcard_id] = card
        created.append(card)
    return created


@router.get("/flashcards", response_model=list[Flashcard])
async def list_flashcards(
    user_id: str = Depends(get_user_id),
    document_id: Optional[str] = None,
    favorites_only: bool = False,
):
    cards = [c for c in store.flashcards.values() if c.user_id == user_id]
    if document_id:
        cards = [c for c in cards if c.document_id == document_id]
    if favorites_only:
        cards = [c for c in cards if c.is_favorite]
    return cards


@router.patch("/flashcards/{flashcard_id}/favorite", response_model=Flashcard)
async def toggle_favorite(flashcard_id: str, user_id: str = Depends(get_user_id)):
    card = store.get_owned(store.flashcards, flashcard_id, user_id)
    if card is None:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    card.is_favorite = not card.is_favorite
    return card


@router.delete("/flashcards/{flashcard_id}", status_code=204)
async def delete_flashcard(flashcard_id: str, user_id: str = Depends(get_user_id)):
    if store.get_owned(store.flashcards, flashcard_id, user_id) is None:
        raise HTTPException(status_code=404, detail="Flashcard not found")
    del store.flashcards[flashcard_id]
    return Response(status_code=204)


# ---------- Quizzes ----------

@router.post("/documents/{document_id}/quizzes/generate", response_model=QuizView, status_code=201)
async def create_quiz(
    document_id: str,
    body: Optional[GenerateQuizRequest] = Body(default=None),
    user_id: str = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    document = _get_document(document_id, user_id)
    content = _require_text(document, "a quiz")
    count = body.count if body and body.count else 5

    try:
        questions = await generate_quiz_questions(orchestrator, content, count)
    except GenerationError as exc:
        logger.error("Error generating quiz questions: %s", exc)
        raise generation_http_error(exc, "generate quiz")

    quiz = Quiz(
        quiz_id=uuid.uuid4().hex,
        user_id=user_id,
        document_id=document_id,
        title=f"Quiz: {document.title}",
        questions=questions,
    )
    store.quizzes[quiz.quiz_id] = quiz
    return _quiz_view(quiz)


@router.get("/quizzes", response_model=list[QuizSummary])
async def list_quizzes(user_id: str = Depends(get_user_id), document_id: Optional[str] = None):
    owned = [q for q in store.quizzes.values() if q.user_id == user_id]
    if document_id:
        owned = [q for q in owned if q.document_id == document_id]
    owned.sort(key=lambda q: q.created_at, reverse=True)
    return [
        QuizSummary(
            quiz_id=q.quiz_id,
            document_id=q.document_id,
            title=q.title,
            total_questions=q.total_questions,
            score=q.score,
            created_at=q.created_at,
        )
        for q in owned
    ]


@router.get("/quizzes/{quiz_id}", response_model=QuizView)
async def get_quiz(quiz_id: str, user_id: str = Depends(get_user_id)):
    return _quiz_view(_get_quiz(quiz_id, user_id))


@router.delete("/quizzes/{quiz_id}", status_code=204)
async def delete_quiz(quiz_id: str, user_id: str = Depends(get_user_id)):
    _get_quiz(quiz_id, user_id)
    del store.quizzes[quiz_id]
    return Response(status_code=204)


@router.post("/quizzes/{quiz_id}/submit", response_model=SubmitQuizResponse)
async def submit_quiz(quiz_id: str, body: SubmitQuizRequest, user_id: str = Depends(get_user_id)):
    """Scores the quiz once. Unanswered questions are stored as -1 and count as wrong."""
    quiz = _get_quiz(quiz_id, user_id)
    if quiz.score is not None:
        raise HTTPException(status_code=400, detail="Quiz already completed")

    answers = normalize_answers(body.answers, quiz.total_questions)
    correct, score = score_quiz(quiz.questions, answers)
    quiz.user_answers = answers
    quiz.score = score
    quiz.completed_at = datetime.utcnow()

    return SubmitQuizResponse(score=score, correct=correct, total=quiz.total_questions, quiz=_quiz_view(quiz))


# ---------- Progress ----------

def _truncate(text: str, limit: int = 50) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(user_id: str = Depends(get_user_id)):
    """Record counts plus the most recent documents, flashcards and quizzes, newest first."""
    documents = [d for d in store.documents.values() if d.user_id == user_id]
    cards = [c for c in store.flashcards.values() if c.user_id == user_id]
    quizzes = [q for q in store.quizzes.values() if q.user_id == user_id]

    activity = [
        ActivityItem(
            type="document",
            action="Uploaded document",
            timestamp=d.created_at,
            item_id=d.document_id,
            item_name=d.title,
        )
        for d in documents
    ]
    activity += [
        ActivityItem(
            type="flashcard",
            action="Created flashcard",
            timestamp=c.created_at,
            item_id=c.flashcard_id,
            item_name=_truncate(c.front),
        )
        for c in cards
    ]
    activity += [
        ActivityItem(
            type="quiz",
            action="Completed quiz" if q.score is not None else "Created quiz",
            timestamp=q.created_at,
            item_id=q.quiz_id,
            item_name=q.title,
        )
        for q in quizzes
    ]
    activity.sort(key=lambda item: item.timestamp, reverse=True)

    return ProgressResponse(
        total_documents=len(documents),
        total_flashcards=len(cards),
        total_quizzes=len(quizzes),
        recent_activity=activity[:RECENT_ACTIVITY_LIMIT],
    )
