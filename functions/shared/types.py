# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import StrEnum
from typing import List, Optional


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"


@dataclass
class Option:
    id: str
    text: str
    is_correct: bool = False


@dataclass
class Question:
    question_id: str
    text: str
    options: List[Option]
    type: str = QuestionType.MULTIPLE_CHOICE

    def correct_option(self) -> Optional[Option]:
        """Returns the first option flagged correct, or None if unscorable."""
        for option in self.options:
            if option.is_correct:
                return option
        return None


@dataclass
class Quiz:
    id: str
    title: str
    questions: List[Question]
    created_at: str
    description: str = ""


@dataclass
class QuizSummary:
    quiz_id: str
    title: str
    description: str


@dataclass
class Answer:
    question_id: str
    selected_option_id: str


@dataclass
class Submission:
    """A scored quiz attempt, stored once in the results collection."""

    quiz_id: str
    user_id: str
    answers: List[Answer]
    score: int
    submitted_at: str


@dataclass
class UserHistoryEntry:
    """Summary of one submission, appended to the user's quizzesTaken."""

    quiz_id: str
    score: int
    completed_at: str
    # Absent on entries written before submissions carried ids.
    submission_id: Optional[str] = None


@dataclass
class LeaderboardRow:
    rank: int
    user_id: str
    total_score: int
    quizzes_taken: int
