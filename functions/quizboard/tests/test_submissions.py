import os
import shutil
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor

from quiz_testing_utils import FlakyDocumentStore, answer, make_question
from quizboard.errors import NotFoundError, TransientStoreError
from quizboard.leaderboard import LeaderboardAggregator
from quizboard.quizzes import QuizCatalog
from quizboard.retry import RetryPolicy
from quizboard.sql_store import SqlDocumentStore
from quizboard.store import InMemoryDocumentStore
from quizboard.submissions import SubmissionRecorder, submission_id_for

FAST_RETRY = RetryPolicy(attempts=3, initial_wait=0, max_wait=0)


class SubmissionRecorderTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.catalog = QuizCatalog(self.store)
        self.quiz_id = self.catalog.create_quiz(
            "Capitals", "", [make_question("q1"), make_question("q2")]
        )
        self.recorder = SubmissionRecorder(self.store, self.catalog)

    def test_submit_records_result_and_history(self):
        receipt = self.recorder.submit(
            self.quiz_id, "user123", [answer("q1", "o1"), answer("q2", "o3")]
        )

        self.assertEqual(receipt.score, 1)
        self.assertFalse(receipt.replayed)

        result = self.store.get("results", receipt.submission_id)
        self.assertEqual(result["quizId"], self.quiz_id)
        self.assertEqual(result["userId"], "user123")
        self.assertEqual(result["score"], 1)
        self.assertEqual(
            result["answers"][0], {"questionId": "q1", "selectedOptionId": "o1"}
        )

        history = self.recorder.history("user123")
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].quiz_id, self.quiz_id)
        self.assertEqual(history[0].score, 1)
        self.assertEqual(history[0].submission_id, receipt.submission_id)
        self.assertEqual(history[0].completed_at, result["submittedAt"])

    def test_history_appends_in_order(self):
        scores = [
            self.recorder.submit(self.quiz_id, "user123", answers).score
            for answers in (
                [answer("q1", "o1")],
                [answer("q1", "o1"), answer("q2", "o1")],
                [],
            )
        ]

        history = self.recorder.history("user123")

        self.assertEqual([entry.score for entry in history], scores)
        self.assertEqual(scores, [1, 2, 0])

    def test_existing_user_fields_are_kept(self):
        self.store.set("users", "user123", {"displayName": "Ada"})

        self.recorder.submit(self.quiz_id, "user123", [answer("q1", "o1")])

        user = self.store.get("users", "user123")
        self.assertEqual(user["displayName"], "Ada")
        self.assertEqual(len(user["quizzesTaken"]), 1)

    def test_unknown_quiz_raises_and_writes_nothing(self):
        with self.assertRaises(NotFoundError):
            self.recorder.submit("missing", "user123", [answer("q1", "o1")])
        self.assertEqual(self.store.query_all("results"), [])
        self.assertIsNone(self.store.get("users", "user123"))

    def test_idempotency_key_replays_first_submission(self):
        first = self.recorder.submit(
            self.quiz_id, "user123", [answer("q1", "o1")], idempotency_key="abc"
        )
        second = self.recorder.submit(
            self.quiz_id,
            "user123",
            [answer("q1", "o1"), answer("q2", "o1")],
            idempotency_key="abc",
        )

        self.assertEqual(first.submission_id, second.submission_id)
        self.assertTrue(second.replayed)
        self.assertEqual(second.score, 1)
        self.assertEqual(len(self.store.query_all("results")), 1)
        self.assertEqual(len(self.recorder.history("user123")), 1)

    def test_idempotency_key_is_scoped_to_user_and_quiz(self):
        self.assertNotEqual(
            submission_id_for("quiz1", "alice", "abc"),
            submission_id_for("quiz1", "bob", "abc"),
        )
        self.assertNotEqual(
            submission_id_for("quiz1", "alice", "abc"),
            submission_id_for("quiz2", "alice", "abc"),
        )
        self.assertEqual(
            submission_id_for("quiz1", "alice", "abc"),
            submission_id_for("quiz1", "alice", "abc"),
        )

    def test_submissions_without_key_are_all_recorded(self):
        for _ in range(3):
            self.recorder.submit(self.quiz_id, "user123", [answer("q1", "o1")])
        self.assertEqual(len(self.store.query_all("results")), 3)
        self.assertEqual(len(self.recorder.history("user123")), 3)

    def test_history_for_unknown_user_raises(self):
        with self.assertRaises(NotFoundError):
            self.recorder.history("nobody")

    def test_leaderboard_totals_match_submissions(self):
        submitted = {"alice": 0, "bob": 0}
        plans = [
            ("alice", [answer("q1", "o1"), answer("q2", "o1")]),
            ("bob", [answer("q1", "o1")]),
            ("alice", [answer("q1", "o2")]),
            ("bob", [answer("q2", "o1"), answer("q1", "o1")]),
            ("bob", []),
        ]
        for user_id, answers in plans:
            submitted[user_id] += self.recorder.submit(
                self.quiz_id, user_id, answers
            ).score

        rows = LeaderboardAggregator(self.store).leaderboard()

        by_user = {row.user_id: row for row in rows}
        self.assertEqual(by_user["alice"].total_score, submitted["alice"])
        self.assertEqual(by_user["alice"].quizzes_taken, 2)
        self.assertEqual(by_user["bob"].total_score, submitted["bob"])
        self.assertEqual(by_user["bob"].quizzes_taken, 3)


class SubmissionRetryTests(unittest.TestCase):
    def _recorder(self, store, failures, fail_after_commit=False):
        catalog = QuizCatalog(store)
        quiz_id = catalog.create_quiz("Capitals", "", [make_question("q1")])
        store.failures = failures
        store.fail_after_commit = fail_after_commit
        store.transaction_calls = 0
        return quiz_id, SubmissionRecorder(store, catalog, FAST_RETRY)

    def test_transient_failure_is_retried(self):
        store = FlakyDocumentStore()
        quiz_id, recorder = self._recorder(store, failures=2)

        receipt = recorder.submit(quiz_id, "user123", [answer("q1", "o1")])

        self.assertEqual(receipt.score, 1)
        self.assertEqual(store.transaction_calls, 3)
        self.assertEqual(len(store.query_all("results")), 1)
        self.assertEqual(len(recorder.history("user123")), 1)

    def test_retry_after_lost_commit_does_not_double_count(self):
        store = FlakyDocumentStore()
        quiz_id, recorder = self._recorder(store, failures=1, fail_after_commit=True)

        receipt = recorder.submit(quiz_id, "user123", [answer("q1", "o1")])

        self.assertTrue(receipt.replayed)
        self.assertEqual(receipt.score, 1)
        self.assertEqual(len(store.query_all("results")), 1)
        self.assertEqual(len(recorder.history("user123")), 1)

    def test_exhausted_retries_leave_no_partial_state(self):
        store = FlakyDocumentStore()
        quiz_id, recorder = self._recorder(store, failures=5)

        with self.assertRaises(TransientStoreError):
            recorder.submit(quiz_id, "user123", [answer("q1", "o1")])

        self.assertEqual(store.transaction_calls, 3)
        self.assertEqual(store.query_all("results"), [])
        self.assertIsNone(store.get("users", "user123"))


class ConcurrentSubmissionTests(unittest.TestCase):
    N_SUBMISSIONS = 16

    def setUp(self):
        self.db_dir = tempfile.mkdtemp()

    def tearDown(self):
        if os.path.exists(self.db_dir):
            shutil.rmtree(self.db_dir)

    def _submit_concurrently(self, store):
        catalog = QuizCatalog(store, FAST_RETRY)
        quiz_id = catalog.create_quiz("Capitals", "", [make_question("q1")])
        recorder = SubmissionRecorder(store, catalog, FAST_RETRY)

        with ThreadPoolExecutor(max_workers=8) as pool:
            receipts = list(
                pool.map(
                    lambda i: recorder.submit(
                        quiz_id, "user123", [answer("q1", f"o{i % 2 + 1}")]
                    ),
                    range(self.N_SUBMISSIONS),
                )
            )

        history = recorder.history("user123")
        self.assertEqual(len(history), self.N_SUBMISSIONS)
        self.assertEqual(len(store.query_all("results")), self.N_SUBMISSIONS)
        self.assertEqual(
            sorted(entry.submission_id for entry in history),
            sorted(receipt.submission_id for receipt in receipts),
        )
        rows = LeaderboardAggregator(store).leaderboard()
        self.assertEqual(rows[0].total_score, self.N_SUBMISSIONS // 2)

    def test_same_user_submissions_in_memory(self):
        self._submit_concurrently(InMemoryDocumentStore())

    def test_same_user_submissions_sqlite(self):
        store = SqlDocumentStore(
            f"sqlite+pysqlite:///{os.path.join(self.db_dir, 'quizboard.db')}"
        )
        try:
            self._submit_concurrently(store)
        finally:
            store.engine.dispose()


if __name__ == "__main__":
    unittest.main()
