from models.learning import ChatMessage, Document, Flashcard, FlashcardDraft, Quiz, QuizQuestion
from models.session import InterviewSession, QuestionAnswer

__all__ = [
    "ChatMessage", "Document", "Flashcard", "FlashcardDraft", "Quiz", "QuizQuestion",
    "InterviewSession", "QuestionAnswer",
]
