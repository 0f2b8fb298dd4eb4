"""Tests for revlens-store implementations."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timezone

import pytest

from revlens_store.history import HistoryStore, sort_newest_first
from revlens_store.jsonfile import JsonArrayStore
from revlens_store.models import (
    Issue,
    IssueCounts,
    ReviewMetadata,
    TokenCounts,
    TokenUsage,
    WebHistoryItem,
    history_item_from_dict,
    issue_from_dict,
    new_record_id,
    review_from_dict,
    review_to_dict,
)
from revlens_store.noop import NoOpStore
from revlens_store.reviews import ReviewStore


def _make_record(record_id="rev_1", timestamp=None, issues=None, total=30):
    return ReviewMetadata(
        id=record_id,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        repository="/src/app",
        branch="main",
        commit_hash="a" * 40,
        files_changed=2,
        lines_changed=40,
        tokens_used=TokenUsage(input=10, output=20, total=total),
        review_duration_ms=1200,
        issues=issues if issues is not None else [Issue(message="Missing null check", severity="high", type="bug")],
    )


def _make_item(item_id="web_1", timestamp="2026-01-01T10:00:00.000Z", cost=0.0001):
    return WebHistoryItem(
        id=item_id,
        timestamp=timestamp,
        file_name="a.ts",
        issues=IssueCounts(critical=1),
        tokens=TokenCounts(input=10, output=10),
        duration=100,
        cost=cost,
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParsing:
    def test_issue_defaults_for_missing_type_and_severity(self):
        issue = issue_from_dict({"message": "x"})
        assert issue.type == "maintainability"
        assert issue.severity == "info"

    def test_issue_unknown_values_coerced(self):
        issue = issue_from_dict({"message": "x", "type": "typo", "severity": "blocker"})
        assert issue.type == "maintainability"
        assert issue.severity == "info"

    def test_issue_without_message_rejected(self):
        with pytest.raises(ValueError):
            issue_from_dict({"type": "bug"})

    def test_review_defaults(self):
        record = review_from_dict({"id": "r", "timestamp": "2026-01-01T00:00:00Z"})
        assert record.repository == "unknown"
        assert record.branch == "unknown"
        assert record.commit_hash == "unknown"
        assert record.files_changed == 0
        assert record.lines_changed == 0
        assert record.tokens_used == TokenUsage(0, 0, 0)
        assert record.review_duration_ms == 0
        assert record.issues == []
        assert record.model_name == "models/gemini-2.5-flash"

    def test_review_total_not_rederived(self):
        record = review_from_dict({"id": "r", "timestamp": "t", "tokensUsed": {"input": 5, "output": 5, "total": 99}})
        assert record.tokens_used.total == 99

    def test_review_negative_counts_clamped(self):
        record = review_from_dict({"id": "r", "timestamp": "t", "filesChanged": -3, "reviewDurationMs": 12.7})
        assert record.files_changed == 0
        assert record.review_duration_ms == 12

    @pytest.mark.parametrize("data", [[], "text", None, {"timestamp": "t"}, {"id": "r"}])
    def test_review_unrecoverable_input_rejected(self, data):
        with pytest.raises(ValueError):
            review_from_dict(data)

    def test_history_item_defaults(self):
        item = history_item_from_dict({"id": "w", "timestamp": "t"})
        assert item.file_name == ""
        assert item.issues == IssueCounts()
        assert item.tokens == TokenCounts()
        assert item.duration == 0
        assert item.cost == 0.0

    @pytest.mark.parametrize("cost", [float("nan"), float("inf"), float("-inf"), "0.5", None])
    def test_history_item_unusable_cost_defaults(self, cost):
        item = history_item_from_dict({"id": "w", "timestamp": "t", "cost": cost})
        assert item.cost == 0.0

    def test_to_dict_uses_camel_case(self):
        d = review_to_dict(_make_record())
        assert d["commitHash"] == "a" * 40
        assert d["tokensUsed"] == {"input": 10, "output": 20, "total": 30}
        assert d["reviewDurationMs"] == 1200
        assert "file" not in d["issues"][0]

    def test_new_record_id_format(self):
        prefix, millis, suffix = new_record_id("web").split("_")
        assert prefix == "web"
        assert millis.isdigit()
        assert len(suffix) == 6

    def test_new_record_ids_are_unique(self):
        assert len({new_record_id("rev") for _ in range(200)}) == 200


# ---------------------------------------------------------------------------
# NoOpStore
# ---------------------------------------------------------------------------


class TestNoOpStore:
    def test_append_does_not_raise(self):
        NoOpStore().append(_make_record())  # must not raise

    def test_read_all_returns_empty(self):
        store = NoOpStore()
        store.append(_make_record())
        assert store.read_all() == []


# ---------------------------------------------------------------------------
# ReviewStore
# ---------------------------------------------------------------------------


class TestReviewStore:
    def test_fresh_store_reads_empty_and_creates_file(self, tmp_path):
        store = ReviewStore(tmp_path / "analytics")
        assert store.read_all() == []
        assert store.path.exists()
        assert json.loads(store.path.read_text()) == []

    def test_append_and_read(self, tmp_path):
        store = ReviewStore(tmp_path)
        record = _make_record()
        store.append(record)

        results = store.read_all()
        assert len(results) == 1
        assert results[0] == record

    def test_appends_keep_call_order(self, tmp_path):
        store = ReviewStore(tmp_path)
        for i in range(5):
            store.append(_make_record(record_id=f"rev_{i}"))

        assert [r.id for r in store.read_all()] == [f"rev_{i}" for i in range(5)]

    def test_defaults_filled_on_readback(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.append(ReviewMetadata(id="r", timestamp="2026-01-01T00:00:00Z", issues=[Issue(message="x")]))

        record = store.read_all()[0]
        assert record.repository == "unknown"
        assert record.issues[0].type == "maintainability"
        assert record.issues[0].severity == "info"

    def test_invalid_severity_coerced_on_write(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.append(_make_record(issues=[Issue(message="x", severity="urgent")]))

        stored = json.loads(store.path.read_text())
        assert stored[0]["issues"][0]["severity"] == "info"

    def test_persists_across_instances(self, tmp_path):
        ReviewStore(tmp_path).append(_make_record())
        assert len(ReviewStore(tmp_path).read_all()) == 1

    def test_malformed_file_reads_empty(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.path.write_text("{not json")
        assert store.read_all() == []

    def test_schema_failure_reads_empty(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.path.write_text(json.dumps([{"id": "ok", "timestamp": "t"}, {"timestamp": "no id"}]))
        assert store.read_all() == []

    def test_non_array_document_reads_empty(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.path.write_text(json.dumps({"id": "r", "timestamp": "t"}))
        assert store.read_all() == []

    def test_append_quarantines_malformed_file(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.path.write_text("{not json")

        store.append(_make_record())

        assert [r.id for r in store.read_all()] == ["rev_1"]
        quarantined = list(tmp_path.glob("reviews.json.corrupt-*"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text() == "{not json"

    def test_append_invalid_record_does_not_raise(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.append(ReviewMetadata(id="", timestamp="t"))  # must not raise
        assert store.read_all() == []

    def test_append_unwritable_directory_does_not_raise(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = ReviewStore(blocker / "analytics")

        store.append(_make_record())  # must not raise
        assert store.read_all() == []

    def test_concurrent_appends_are_not_lost(self, tmp_path):
        store = ReviewStore(tmp_path)
        threads = [
            threading.Thread(target=ReviewStore(tmp_path).append, args=(_make_record(record_id=f"rev_{i}"),))
            for i in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r.id for r in store.read_all()) == sorted(f"rev_{i}" for i in range(20))

    def test_no_temp_files_left_behind(self, tmp_path):
        store = ReviewStore(tmp_path)
        store.append(_make_record())
        assert list(tmp_path.glob("*.tmp")) == []


# ---------------------------------------------------------------------------
# HistoryStore
# ---------------------------------------------------------------------------


class TestHistoryStore:
    def test_fresh_store_reads_empty(self, tmp_path):
        store = HistoryStore(tmp_path)
        assert store.read_all() == []
        assert (tmp_path / "history.json").exists()

    def test_append_and_read(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.append(_make_item())

        items = store.read_all()
        assert len(items) == 1
        assert items[0].file_name == "a.ts"
        assert items[0].issues.critical == 1

    def test_independent_of_review_store(self, tmp_path):
        HistoryStore(tmp_path).append(_make_item())
        assert ReviewStore(tmp_path).read_all() == []

    def test_cost_precision_preserved(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.append(_make_item(cost=0.000123))
        assert store.read_all()[0].cost == 0.000123

    def test_non_finite_cost_written_as_plain_json(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.append(_make_item(cost=float("nan")))

        text = (tmp_path / "history.json").read_text(encoding="utf-8")
        assert "NaN" not in text
        assert json.loads(text)[0]["cost"] == 0.0
        assert store.read_all()[0].cost == 0.0

    def test_sort_newest_first(self):
        items = [
            _make_item("a", "2026-01-01T00:00:00Z"),
            _make_item("b", "2026-03-01T00:00:00Z"),
            _make_item("c", "not a date"),
            _make_item("d", "2026-02-01T00:00:00+00:00"),
        ]
        assert [i.id for i in sort_newest_first(items)] == ["b", "d", "a", "c"]


# ---------------------------------------------------------------------------
# JsonArrayStore
# ---------------------------------------------------------------------------


class TestJsonArrayStore:
    def test_store_missing_record_mapping_cannot_be_created(self, tmp_path):
        class HalfStore(JsonArrayStore[dict]):
            FILENAME = "half.json"

            @staticmethod
            def _to_dict(record: dict) -> dict:
                return record

        with pytest.raises(TypeError):
            HalfStore(tmp_path)
