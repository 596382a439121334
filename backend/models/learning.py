from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Document(BaseModel):
    document_id: str
    user_id: str
    title: str
    content: str                # extracted text; PDF parsing happens upstream
    page_count: int = 0
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ChatMessage(BaseModel):
    role: str                   # "user" | "assistant"
    content: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class FlashcardDraft(BaseModel):
    front: str
    back: str


class Flashcard(FlashcardDraft):
    flashcard_id: str
    user_id: str
    document_id: str
    is_favorite: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class QuizQuestion(BaseModel):
    question: str
    options: list[str]
    correct_answer: int         # 0-based index into options
    explanation: str = ""


class Quiz(BaseModel):
    quiz_id: str
    user_id: str
    document_id: str
    title: str
    questions: list[QuizQuestion]
    user_answers: Optional[list[Optional[int]]] = None
    score: Optional[int] = None     # 0-100, set once on submit
    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)
