"""
In-memory stores shared across all routes.
Records are owner-scoped by user_id; persistence is out of scope, so they
live in plain dicts for the lifetime of the process.
"""

from models.learning import ChatMessage, Document, Flashcard, Quiz
from models.session import InterviewSession

sessions: dict[str, InterviewSession] = {}
documents: dict[str, Document] = {}
chat_messages: dict[str, list[ChatMessage]] = {}    # keyed by document_id
flashcards: dict[str, Flashcard] = {}
quizzes: dict[str, Quiz] = {}


def clear() -> None:
    for table in (sessions, documents, chat_messages, flashcards, quizzes):
        table.clear()


def get_owned(table: dict, record_id: str, user_id: str):
    """Record by id, or None when it is missing or belongs to another user."""
    record = table.get(record_id)
    if record is None or record.user_id != user_id:
        return None
    return record
