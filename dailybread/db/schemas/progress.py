from .base import RequestModel


class CompleteRequest(RequestModel):
    lesson_id: str | None = None
    time_spent_sec: int | None = None


class QuizScoreRequest(RequestModel):
    lesson_id: str | None = None
    score: int | None = None
