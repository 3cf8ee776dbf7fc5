"""
Tests for scoring and the result sinks.
"""

import json

import pytest

from quiz_portal.core.errors import SubmissionError
from quiz_portal.core.services.result_sink import InMemoryResultSink, JsonlResultSink, score_answers


class TestScoreAnswers:
    def test_counts_matching_answers(self):
        assert score_answers({"q1": "A", "q2": "C"}, {"q1": "A", "q2": "B", "q3": "D"}) == (1, 3)

    def test_no_key_means_unscored(self):
        assert score_answers({"q1": "A"}, {}) is None

    def test_total_is_question_count_with_partial_key(self):
        questions = ["q1", "q2", "q3", "q4", "q5"]

        assert score_answers({"q1": "A", "q4": "B"}, {"q1": "A"}, questions) == (1, 5)

    def test_key_entries_for_unknown_questions_are_ignored(self):
        assert score_answers({"q1": "A", "zz": "B"}, {"q1": "A", "zz": "B"}, ["q1", "q2"]) == (1, 2)
        assert score_answers({}, {"zz": "A"}, ["q1", "q2"]) is None


class TestInMemoryResultSink:
    @pytest.mark.asyncio
    async def test_scores_against_answer_key(self):
        sink = InMemoryResultSink(answer_keys=lambda quiz_id: {"q1": "A", "q2": "B"})

        receipt = await sink.submit_answers("quiz-1", "s1", {"q1": "A", "q2": "A"})

        assert receipt.accepted
        assert (receipt.score, receipt.total) == (1, 2)
        assert sink.has_submitted("quiz-1", "s1")
        assert not sink.has_submitted("quiz-1", "s2")

    @pytest.mark.asyncio
    async def test_total_counts_every_question_of_the_quiz(self):
        sink = InMemoryResultSink(answer_keys=lambda quiz_id: {"q1": "A"})

        receipt = await sink.submit_answers(
            "quiz-1", "s1", {"q1": "A"}, question_ids=("q1", "q2", "q3", "q4", "q5")
        )

        assert (receipt.score, receipt.total) == (1, 5)

    @pytest.mark.asyncio
    async def test_without_key_scoring_is_deferred(self):
        sink = InMemoryResultSink()

        receipt = await sink.submit_answers("quiz-1", "s1", {})

        assert receipt.accepted
        assert not receipt.is_scored

    @pytest.mark.asyncio
    async def test_second_submission_by_same_student_is_rejected(self):
        sink = InMemoryResultSink()
        await sink.submit_answers("quiz-1", "s1", {"q1": "A"})

        with pytest.raises(SubmissionError):
            await sink.submit_answers("quiz-1", "s1", {"q1": "B"})

        assert [s.answers for s in sink.get_submissions()] == [{"q1": "A"}]

    @pytest.mark.asyncio
    async def test_stored_answers_are_copied(self):
        sink = InMemoryResultSink()
        answers = {"q1": "A"}
        await sink.submit_answers("quiz-1", "s1", answers)

        answers["q2"] = "B"

        assert sink.get_submissions()[0].answers == {"q1": "A"}


class TestJsonlResultSink:
    @pytest.mark.asyncio
    async def test_appends_one_line_per_submission(self, tmp_path):
        path = tmp_path / "out" / "results.jsonl"
        sink = JsonlResultSink(path, answer_keys=lambda quiz_id: {"q1": "A"})

        await sink.submit_answers("quiz-1", "s1", {"q1": "A"})
        await sink.submit_answers("quiz-1", "s2", {"q1": "B"})

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["user_id"] == "s1"
        assert first["score"] == 1
        assert first["total"] == 1

    @pytest.mark.asyncio
    async def test_reads_back_submissions(self, tmp_path):
        sink = JsonlResultSink(tmp_path / "results.jsonl")
        await sink.submit_answers("quiz-1", "s1", {"q1": "C"})

        submissions = sink.get_submissions()

        assert len(submissions) == 1
        assert submissions[0].answers == {"q1": "C"}
        assert submissions[0].submitted_at.tzinfo is not None
        assert sink.has_submitted("quiz-1", "s1")

    @pytest.mark.asyncio
    async def test_duplicate_is_rejected_across_instances(self, tmp_path):
        path = tmp_path / "results.jsonl"
        await JsonlResultSink(path).submit_answers("quiz-1", "s1", {})

        with pytest.raises(SubmissionError):
            await JsonlResultSink(path).submit_answers("quiz-1", "s1", {})

    @pytest.mark.asyncio
    async def test_unwritable_path_raises_submission_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        sink = JsonlResultSink(blocker / "results.jsonl")

        with pytest.raises(SubmissionError):
            await sink.submit_answers("quiz-1", "s1", {})

    def test_missing_file_has_no_submissions(self, tmp_path):
        sink = JsonlResultSink(tmp_path / "results.jsonl")

        assert sink.get_submissions() == []
        assert not sink.has_submitted("quiz-1", "s1")
