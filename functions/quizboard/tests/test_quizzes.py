import unittest
from datetime import datetime, timezone

from quiz_testing_utils import make_question
from quizboard.errors import NotFoundError, ValidationError
from quizboard.quizzes import QuizCatalog
from quizboard.store import InMemoryDocumentStore


class QuizCatalogTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.catalog = QuizCatalog(self.store)

    def test_create_and_get_quiz(self):
        quiz_id = self.catalog.create_quiz(
            "Capitals", "Name the capital.", [make_question("q1", correct="o2")]
        )

        quiz = self.catalog.get_quiz(quiz_id)

        self.assertEqual(quiz.id, quiz_id)
        self.assertEqual(quiz.title, "Capitals")
        self.assertEqual(quiz.description, "Name the capital.")
        self.assertEqual(quiz.questions[0].question_id, "q1")
        self.assertEqual(quiz.questions[0].correct_option().id, "o2")
        self.assertTrue(quiz.created_at)

    def test_stored_document_uses_camel_case(self):
        quiz_id = self.catalog.create_quiz("Capitals", "", [make_question("q1")])

        doc = self.store.get("quizzes", quiz_id)

        self.assertNotIn("id", doc)
        self.assertIn("createdAt", doc)
        self.assertEqual(doc["questions"][0]["questionId"], "q1")
        self.assertEqual(
            doc["questions"][0]["options"][0],
            {"id": "o1", "text": "Option 1", "isCorrect": True},
        )

    def test_get_missing_quiz(self):
        with self.assertRaises(NotFoundError):
            self.catalog.get_quiz("missing")

    def test_list_quizzes(self):
        self.assertEqual(self.catalog.list_quizzes(), [])
        first = self.catalog.create_quiz("First", "1", [make_question("q1")])
        second = self.catalog.create_quiz("Second", "2", [make_question("q1")])

        summaries = self.catalog.list_quizzes()

        self.assertEqual(
            sorted((s.quiz_id, s.title, s.description) for s in summaries),
            sorted([(first, "First", "1"), (second, "Second", "2")]),
        )

    def test_datetime_created_at_is_read_as_text(self):
        self.store.set(
            "quizzes",
            "legacy",
            {
                "title": "Legacy",
                "description": "",
                "questions": [],
                "createdAt": datetime(2024, 5, 1, tzinfo=timezone.utc),
            },
        )
        newer = self.catalog.create_quiz("Newer", "", [make_question("q1")])

        summaries = self.catalog.list_quizzes()

        self.assertEqual([s.quiz_id for s in summaries], ["legacy", newer])
        self.assertEqual(
            self.catalog.get_quiz("legacy").created_at, "2024-05-01T00:00:00+00:00"
        )

    def test_duplicate_question_ids_rejected(self):
        with self.assertRaises(ValidationError):
            self.catalog.create_quiz(
                "Dupes", "", [make_question("q1"), make_question("q1")]
            )
        self.assertEqual(self.store.query_all("quizzes"), [])

    def test_duplicate_option_ids_rejected(self):
        question = make_question("q1")
        question.options[1].id = "o1"
        with self.assertRaises(ValidationError):
            self.catalog.create_quiz("Dupes", "", [question])


if __name__ == "__main__":
    unittest.main()
