from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class QuestionAnswer(BaseModel):
    question: str
    answer: str
    explanation: Optional[str] = None
    is_pinned: bool = False
    notes: str = ""


class InterviewSession(BaseModel):
    session_id: str
    user_id: str
    job_role: str
    experience_level: str
    tech_stack: list[str]
    questions: list[QuestionAnswer] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
