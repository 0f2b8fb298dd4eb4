"""Tests for turning finished review runs into records."""

import subprocess
from unittest.mock import MagicMock, patch

from revlens_core.capture import (
    GitInfo,
    ReviewOutcome,
    ReviewSession,
    build_review_record,
    capture_review,
    collect_git_info,
)
from revlens_store.models import Issue
from revlens_store.reviews import ReviewStore


class TestReviewSession:
    def test_not_cancelled_by_default(self):
        assert ReviewSession().cancelled is False

    def test_cancel(self):
        session = ReviewSession()
        session.cancel()
        assert session.cancelled is True

    def test_finish_reports_aborted_when_cancelled(self):
        session = ReviewSession()
        session.cancel()
        assert session.finish().aborted is True

    def test_finish_carries_results(self):
        outcome = ReviewSession().finish(input_tokens=5, output_tokens=7, issues=[Issue(message="x")], review_text="r")
        assert outcome.input_tokens == 5
        assert outcome.output_tokens == 7
        assert len(outcome.issues) == 1
        assert outcome.duration_ms >= 0
        assert outcome.aborted is False


class TestBuildReviewRecord:
    def test_reported_tokens(self):
        record = build_review_record(ReviewOutcome(duration_ms=900, input_tokens=100, output_tokens=50))
        assert (record.tokens_used.input, record.tokens_used.output, record.tokens_used.total) == (100, 50, 150)
        assert record.review_duration_ms == 900
        assert record.id.startswith("rev_")

    def test_output_estimate_feeds_total_only(self):
        outcome = ReviewOutcome(duration_ms=1, input_tokens=100, output_tokens=None, review_text="x" * 41)
        record = build_review_record(outcome)
        assert record.tokens_used.output == 0
        assert record.tokens_used.total == 111

    def test_git_provenance(self):
        info = GitInfo(repository="/src/app", branch="feature", commit_hash="abc", files_changed=3, lines_changed=42)
        record = build_review_record(ReviewOutcome(duration_ms=1), info, model_name="models/x")
        assert record.repository == "/src/app"
        assert record.branch == "feature"
        assert record.commit_hash == "abc"
        assert record.files_changed == 3
        assert record.lines_changed == 42
        assert record.model_name == "models/x"

    def test_defaults_without_git_info(self):
        record = build_review_record(ReviewOutcome(duration_ms=1))
        assert record.repository == "unknown"
        assert record.branch == "unknown"


class TestCaptureReview:
    def test_appends_record(self, tmp_path):
        store = ReviewStore(tmp_path)
        record = capture_review(store, ReviewOutcome(duration_ms=10, issues=[Issue(message="x", severity="critical")]))

        stored = store.read_all()
        assert [r.id for r in stored] == [record.id]
        assert stored[0].issues[0].severity == "critical"

    def test_aborted_run_not_recorded(self, tmp_path):
        store = ReviewStore(tmp_path)
        assert capture_review(store, ReviewOutcome(duration_ms=10, aborted=True)) is None
        assert store.read_all() == []

    def test_store_failure_does_not_raise(self):
        store = MagicMock(spec=ReviewStore)
        store.append.side_effect = OSError("disk full")
        assert capture_review(store, ReviewOutcome(duration_ms=10)) is None


def _completed(stdout="", returncode=0):
    return MagicMock(returncode=returncode, stdout=stdout)


class TestCollectGitInfo:
    def test_reads_branch_commit_and_diff(self, tmp_path):
        outputs = {
            ("rev-parse", "--abbrev-ref", "HEAD"): _completed("main\n"),
            ("rev-parse", "HEAD"): _completed("deadbeef\n"),
            ("diff", "--numstat"): _completed("3\t1\tsrc/a.py\n-\t-\tlogo.png\n10\t0\tsrc/b.py\n"),
        }
        with patch("subprocess.run", side_effect=lambda args, **kw: outputs[tuple(args[1:])]):
            info = collect_git_info(str(tmp_path))

        assert info.repository == str(tmp_path)
        assert info.branch == "main"
        assert info.commit_hash == "deadbeef"
        assert info.files_changed == 3
        assert info.lines_changed == 14

    def test_git_not_installed(self, tmp_path):
        with patch("subprocess.run", side_effect=FileNotFoundError):
            info = collect_git_info(str(tmp_path))
        assert info.branch == "unknown"
        assert info.commit_hash == "unknown"
        assert info.files_changed == 0

    def test_not_a_repository(self, tmp_path):
        with patch("subprocess.run", return_value=_completed(returncode=128)):
            info = collect_git_info(str(tmp_path))
        assert info.branch == "unknown"
        assert info.lines_changed == 0

    def test_git_times_out(self, tmp_path):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="git", timeout=5)):
            info = collect_git_info(str(tmp_path))
        assert info.commit_hash == "unknown"
