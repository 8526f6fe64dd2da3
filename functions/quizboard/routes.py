"""
HTTP routes for the quiz API.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from quizboard.dependencies import (
    get_leaderboard,
    get_quiz_catalog,
    get_submission_recorder,
)
from quizboard.leaderboard import LeaderboardAggregator
from quizboard.quizzes import QuizCatalog
from quizboard.schemas import (
    CreateQuizRequest,
    CreateQuizResponse,
    HistoryEntryResponse,
    LeaderboardRowResponse,
    MessageResponse,
    OptionPayload,
    QuestionPayload,
    QuizResponse,
    QuizSummaryResponse,
    SubmitAnswersRequest,
    SubmitAnswersResponse,
    UserHistoryResponse,
)
from quizboard.submissions import SubmissionRecorder
from shared.types import Quiz

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = {404: {"model": MessageResponse}}


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": message})


def _quiz_response(quiz: Quiz) -> QuizResponse:
    return QuizResponse(
        quizId=quiz.id,
        title=quiz.title,
        description=quiz.description or "",
        createdAt=quiz.created_at,
        questions=[
            QuestionPayload(
                questionId=question.question_id,
                text=question.text,
                type=question.type,
                options=[
                    OptionPayload(
                        id=option.id, text=option.text, isCorrect=option.is_correct
                    )
                    for option in question.options
                ],
            )
            for question in quiz.questions
        ],
    )


@router.post("/quizzes", response_model=CreateQuizResponse, status_code=201)
def create_quiz(
    payload: CreateQuizRequest,
    catalog: QuizCatalog = Depends(get_quiz_catalog),
):
    quiz_id = catalog.create_quiz(
        title=payload.title,
        description=payload.description,
        questions=[question.to_question() for question in payload.questions],
    )
    return CreateQuizResponse(message="Quiz created successfully", quizId=quiz_id)


@router.get(
    "/quizzes", response_model=List[QuizSummaryResponse], responses=NOT_FOUND
)
def list_quizzes(catalog: QuizCatalog = Depends(get_quiz_catalog)):
    quizzes = catalog.list_quizzes()
    if not quizzes:
        return _not_found("No quizzes found")
    return [
        QuizSummaryResponse(
            quizId=quiz.quiz_id, title=quiz.title, description=quiz.description or ""
        )
        for quiz in quizzes
    ]


# Registered before /quizzes/{quiz_id} so "leaderboard" is not taken as an id.
@router.get(
    "/quizzes/leaderboard",
    response_model=List[LeaderboardRowResponse],
    responses=NOT_FOUND,
)
def quiz_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    aggregator: LeaderboardAggregator = Depends(get_leaderboard),
):
    rows = aggregator.leaderboard(limit=limit)
    if not rows:
        return _not_found("No users found")
    return [
        LeaderboardRowResponse(
            rank=row.rank,
            userId=row.user_id,
            totalScore=row.total_score,
            quizzesTaken=row.quizzes_taken,
        )
        for row in rows
    ]


@router.get("/quizzes/{quiz_id}", response_model=QuizResponse, responses=NOT_FOUND)
def get_quiz(quiz_id: str, catalog: QuizCatalog = Depends(get_quiz_catalog)):
    return _quiz_response(catalog.get_quiz(quiz_id))


@router.post(
    "/quizzes/{quiz_id}/submit",
    response_model=SubmitAnswersResponse,
    responses=NOT_FOUND,
)
def submit_quiz_answers(
    quiz_id: str,
    payload: SubmitAnswersRequest,
    idempotency_key: Optional[str] = Header(None, max_length=256),
    recorder: SubmissionRecorder = Depends(get_submission_recorder),
):
    """
    Score and record a quiz attempt.

    Clients may send an ``Idempotency-Key`` header; repeating a request with
    the same key returns the original score without recording it twice.
    """
    receipt = recorder.submit(
        quiz_id,
        payload.userId,
        [answer.to_answer() for answer in payload.answers],
        idempotency_key=idempotency_key,
    )
    return SubmitAnswersResponse(
        message="Quiz answers submitted successfully", score=receipt.score
    )


@router.get(
    "/users/{user_id}/history", response_model=UserHistoryResponse, responses=NOT_FOUND
)
def user_history(
    user_id: str, recorder: SubmissionRecorder = Depends(get_submission_recorder)
):
    entries = recorder.history(user_id)
    return UserHistoryResponse(
        userId=user_id,
        quizzesTaken=[
            HistoryEntryResponse(
                quizId=entry.quiz_id,
                score=entry.score,
                completedAt=entry.completed_at,
                submissionId=entry.submission_id,
            )
            for entry in entries
        ],
    )
