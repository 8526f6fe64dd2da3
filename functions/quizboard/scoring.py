"""
Quiz scoring.

Pure functions of (quiz, answers): no store access, no side effects.
"""

from __future__ import annotations

from typing import Iterable, Optional

from quizboard.errors import NotFoundError
from shared.types import Answer, Quiz


def score(quiz: Optional[Quiz], answers: Iterable[Answer]) -> int:
    """
    Counts the questions answered with their correct option.

    - Answers to unknown questionIds are ignored.
    - Only the first answer to a question is graded, so each question is
      worth at most one point.
    - A question without a correct option never scores.
    """
    if quiz is None:
        raise NotFoundError("Quiz not found")

    questions = {}
    for question in quiz.questions:
        questions.setdefault(question.question_id, question)
    graded: set[str] = set()
    total = 0
    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None or answer.question_id in graded:
            continue
        graded.add(answer.question_id)
        correct = question.correct_option()
        if correct and correct.id == answer.selected_option_id:
            total += 1
    return total


def max_score(quiz: Quiz) -> int:
    """Number of questions that can award a point."""
    return sum(1 for question in quiz.questions if question.correct_option())
