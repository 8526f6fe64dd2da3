"""
Pydantic schemas for the quiz HTTP API.

Field names are camelCase to match the JSON wire format.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from shared.types import Answer, Option, Question, QuestionType


class OptionPayload(BaseModel):
    id: str = Field(..., min_length=1, max_length=128)
    text: str
    isCorrect: bool = False

    def to_option(self) -> Option:
        return Option(id=self.id, text=self.text, is_correct=self.isCorrect)


class QuestionPayload(BaseModel):
    questionId: str = Field(..., min_length=1, max_length=128)
    text: str
    type: str = QuestionType.MULTIPLE_CHOICE.value
    options: List[OptionPayload] = Field(..., min_length=1)

    def to_question(self) -> Question:
        return Question(
            question_id=self.questionId,
            text=self.text,
            type=self.type,
            options=[option.to_option() for option in self.options],
        )


class CreateQuizRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=256)
    description: str = Field(default="", max_length=4096)
    questions: List[QuestionPayload] = Field(..., min_length=1)


class CreateQuizResponse(BaseModel):
    message: str
    quizId: str


class QuizSummaryResponse(BaseModel):
    quizId: str
    title: str
    description: str


class QuizResponse(BaseModel):
    quizId: str
    title: str
    description: str
    questions: List[QuestionPayload]
    createdAt: str


class AnswerPayload(BaseModel):
    questionId: str
    selectedOptionId: str

    def to_answer(self) -> Answer:
        return Answer(
            question_id=self.questionId, selected_option_id=self.selectedOptionId
        )


class SubmitAnswersRequest(BaseModel):
    userId: str = Field(..., min_length=1, max_length=128)
    answers: List[AnswerPayload]


class SubmitAnswersResponse(BaseModel):
    message: str
    score: int


class LeaderboardRowResponse(BaseModel):
    rank: int
    userId: str
    totalScore: int
    quizzesTaken: int


class HistoryEntryResponse(BaseModel):
    quizId: str
    score: int
    completedAt: str
    submissionId: Optional[str] = None


class UserHistoryResponse(BaseModel):
    userId: str
    quizzesTaken: List[HistoryEntryResponse]


class MessageResponse(BaseModel):
    message: str
