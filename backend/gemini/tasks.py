"""
AI features built on the generation orchestrator.

Each feature is a prompt template plus a response shape; the functions here
only fill the template and pick the shape. Retry, model fallback, caching
and parsing all live in GenerationOrchestrator.
"""

from typing import Iterable, Optional

from pydantic import BaseModel

from gemini import prompts
from gemini.orchestrator import GenerationOrchestrator
from gemini.shapes import (
    FREE_TEXT,
    FieldSpec,
    JsonObjectArray,
    JsonStringArray,
    as_index,
    as_string_list,
    as_text,
)
from models.learning import FlashcardDraft, QuizQuestion


INTERVIEW_QUESTION_COUNT = 2
OUTREACH_MESSAGE_COUNT = 3


# ─── Shapes ───────────────────────────────────────────────────────────

FLASHCARD_FIELDS = (
    FieldSpec("front", ("front", "question"), coerce=as_text),
    FieldSpec("back", ("back", "answer"), coerce=as_text),
)

QUIZ_FIELDS = (
    FieldSpec("question", ("question", "front"), coerce=as_text),
    FieldSpec("options", ("options", "choices"), default=list, coerce=as_string_list),
    FieldSpec("correct_answer", ("correctAnswer", "correct_answer", "answerIndex"), default=0, coerce=as_index),
    FieldSpec("explanation", ("explanation",), coerce=as_text),
)


def flashcards_shape(count: int) -> JsonObjectArray:
    return JsonObjectArray(FLASHCARD_FIELDS, build=FlashcardDraft, count=count, label="flashcards")


def quiz_shape(count: int) -> JsonObjectArray:
    return JsonObjectArray(QUIZ_FIELDS, build=QuizQuestion, count=count, label="quiz questions")


# ─── Interview sessions ───────────────────────────────────────────────

async def generate_interview_questions(
    orchestrator: GenerationOrchestrator,
    job_role: str,
    experience_level: str,
    tech_stack: list[str],
    count: int = INTERVIEW_QUESTION_COUNT,
) -> list[str]:
    prompt = prompts.INTERVIEW_QUESTIONS_PROMPT.format(
        count=count,
        job_role=job_role,
        experience_level=experience_level,
        tech_stack=", ".join(tech_stack),
    )
    return await orchestrator.generate(prompt, JsonStringArray(count))


async def generate_answer(
    orchestrator: GenerationOrchestrator,
    question: str,
    job_role: str,
    experience_level: str,
    tech_stack: list[str],
) -> str:
    prompt = prompts.ANSWER_PROMPT.format(
        question=question,
        job_role=job_role,
        experience_level=experience_level,
        tech_stack=", ".join(tech_stack),
    )
    return await orchestrator.generate(prompt, FREE_TEXT)


async def generate_explanation(orchestrator: GenerationOrchestrator, question: str, answer: str) -> str:
    prompt = prompts.EXPLANATION_PROMPT.format(question=question, answer=answer)
    return await orchestrator.generate(prompt, FREE_TEXT)


# ─── Learning assistant ───────────────────────────────────────────────

def build_chat_prompt(
    message: str,
    document_content: Optional[str] = None,
    history: Iterable[dict] = (),
) -> str:
    """
    Chat prompt: preamble, document excerpt, last few turns, then the question.
    """
    parts = [prompts.CHAT_PREAMBLE]

    if document_content:
        parts.append(f"Document Content:\n{document_content[:prompts.CHAT_DOCUMENT_CHARS]}")

    recent = list(history)[-prompts.CHAT_HISTORY_TURNS:]
    if recent:
        lines = [f"{turn.get('role', '')}: {turn.get('content', '')}" for turn in recent]
        parts.append("Previous conversation:\n" + "\n".join(lines))

    parts.append(prompts.CHAT_QUESTION.format(message=message))
    return "\n\n".join(parts)


async def generate_chat_response(
    orchestrator: GenerationOrchestrator,
    message: str,
    document_content: Optional[str] = None,
    history: Iterable[dict] = (),
) -> str:
    prompt = build_chat_prompt(message, document_content, history)
    return await orchestrator.generate(prompt, FREE_TEXT)


async def generate_document_summary(orchestrator: GenerationOrchestrator, content: str) -> str:
    prompt = prompts.SUMMARY_PROMPT.format(content=content[:prompts.SUMMARY_DOCUMENT_CHARS])
    return await orchestrator.generate(prompt, FREE_TEXT)


async def explain_concept(orchestrator: GenerationOrchestrator, concept: str, content: str) -> str:
    prompt = prompts.CONCEPT_PROMPT.format(
        concept=concept,
        content=content[:prompts.CONCEPT_DOCUMENT_CHARS],
    )
    return await orchestrator.generate(prompt, FREE_TEXT)


async def generate_flashcards(
    orchestrator: GenerationOrchestrator, content: str, count: int = 10
) -> list[FlashcardDraft]:
    prompt = prompts.FLASHCARDS_PROMPT.format(
        count=count,
        content=content[:prompts.FLASHCARD_DOCUMENT_CHARS],
    )
    return await orchestrator.generate(prompt, flashcards_shape(count))


async def generate_quiz_questions(
    orchestrator: GenerationOrchestrator, content: str, count: int = 5
) -> list[QuizQuestion]:
    prompt = prompts.QUIZ_PROMPT.format(
        count=count,
        content=content[:prompts.QUIZ_DOCUMENT_CHARS],
    )
    return await orchestrator.generate(prompt, quiz_shape(count))


# ─── Outreach ─────────────────────────────────────────────────────────

DEFAULT_TONE = "friendly"
DEFAULT_RELATIONSHIP = "cold outreach"
DEFAULT_LENGTH = "medium"


class OutreachRequest(BaseModel):
    platform: str               # "LinkedIn" | "Email" | "Text"
    tone: str = DEFAULT_TONE
    relationship: str = DEFAULT_RELATIONSHIP
    length: str = DEFAULT_LENGTH    # "short" | "medium" | "long"
    job_description: str
    resume_text: str
    company_name: Optional[str] = None
    role_title: Optional[str] = None
    recruiter_name: Optional[str] = None
    sender_name: Optional[str] = None


def build_outreach_prompt(params: OutreachRequest) -> str:
    return prompts.OUTREACH_PROMPT.format(
        platform=params.platform.strip(),
        tone=params.tone.strip() or DEFAULT_TONE,
        relationship=params.relationship.strip() or DEFAULT_RELATIONSHIP,
        company_name=params.company_name or "[Company]",
        role_title=params.role_title or "[Role]",
        recruiter_name=params.recruiter_name or "[Recruiter Name]",
        sender_name=params.sender_name or "[Your Name]",
        job_description=params.job_description[:prompts.OUTREACH_SOURCE_CHARS],
        resume_text=params.resume_text[:prompts.OUTREACH_SOURCE_CHARS],
        count=OUTREACH_MESSAGE_COUNT,
        length_guidance=prompts.length_guidance(params.platform, params.length),
    )


async def generate_outreach_messages(
    orchestrator: GenerationOrchestrator, params: OutreachRequest
) -> list[str]:
    shape = JsonStringArray(OUTREACH_MESSAGE_COUNT, questions_only=False)
    messages = await orchestrator.generate(build_outreach_prompt(params), shape)
    return [message.strip() for message in messages]
