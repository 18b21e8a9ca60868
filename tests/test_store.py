"""
Tests for the response store, audit log and feedback ledger.
"""
from datetime import datetime, timedelta, timezone

import pytest

from autoresponder.models import AuditAction, AuditLogEntry, ResponseStatus
from autoresponder.services import store as store_module


def _save(store, review_id=1, provider="openai", elapsed=1.0):
    return store.save(review_id, 10, "Thanks for your review.", provider, "gpt-3.5-turbo", elapsed)


class TestResponses:
    def test_save_and_get(self, store):
        response_id = _save(store)
        response = store.get(response_id)
        assert response.status == ResponseStatus.PENDING
        assert response.review_id == 1
        assert response.response_text == "Thanks for your review."
        assert store.get_logs()[0].action == AuditAction.RESPONSE_GENERATED.value

    def test_long_values_truncated_with_marker(self, store, monkeypatch):
        monkeypatch.setattr(store_module, "MAX_RESPONSE_TEXT_LENGTH", 20)
        response_id = store.save(1, 10, "x" * 50, "openai", "m" * 150, 1.0)
        response = store.get(response_id)
        assert len(response.response_text) == 20
        assert response.response_text.endswith("...")
        assert len(response.model_used) == 100
        assert response.model_used.endswith("...")

    def test_latest_for_review_is_newest(self, store):
        first = _save(store)
        second = _save(store)
        _save(store, review_id=2)
        assert store.latest_for_review(1).id == second
        assert [r.id for r in store.list_by_review(1)] == [second, first]
        assert store.has_response(1)
        assert not store.has_response(3)

    def test_approve_requires_actor(self, store):
        response_id = _save(store)
        with pytest.raises(ValueError):
            store.set_status(response_id, ResponseStatus.APPROVED)

    def test_approve_stamps_actor(self, store):
        response_id = _save(store)
        assert store.set_status(response_id, "approved", actor="admin-1")
        response = store.get(response_id)
        assert response.approved_by == "admin-1"
        assert response.approved_at is not None
        entry = store.get_logs()[0]
        assert entry.action == AuditAction.RESPONSE_APPROVED.value
        assert entry.details == {"previous_status": "pending"}

    def test_reject_records_reason(self, store):
        response_id = _save(store)
        assert store.set_status(response_id, ResponseStatus.REJECTED, reason="Too generic")
        assert store.get(response_id).rejection_reason == "Too generic"
        assert store.get_logs()[0].details["reason"] == "Too generic"

    def test_set_status_unknown_response(self, store):
        assert store.set_status(999, ResponseStatus.REJECTED) is False

    def test_list_by_status(self, store):
        pending = _save(store)
        rejected = _save(store, review_id=2)
        store.set_status(rejected, ResponseStatus.REJECTED)
        assert [r.id for r in store.list_by_status("pending")] == [pending]


class TestAuditLog:
    def test_unknown_action_rejected(self, store):
        with pytest.raises(ValueError):
            store.log("made_up_action")

    def test_oversized_details_replaced(self, store, monkeypatch):
        monkeypatch.setattr(store_module, "MAX_LOG_DETAILS_LENGTH", 50)
        store.log(AuditAction.DATA_CLEANUP, details={"blob": "x" * 100})
        details = store.get_logs()[0].details
        assert details["error"] == "Details too large, truncated"
        assert details["original_size"] > 50

    def test_cleanup_removes_only_old_entries(self, store, session_factory):
        response_id = _save(store)
        with session_factory() as db:
            db.add(AuditLogEntry(
                action=AuditAction.PROVIDER_ERROR.value,
                created_at=datetime.now(timezone.utc) - timedelta(days=40),
            ))
            db.commit()

        assert store.cleanup(30) == 1
        assert [e.action for e in store.get_logs()] == [AuditAction.RESPONSE_GENERATED.value]
        assert store.get(response_id) is not None

    def test_count_logs_window(self, store):
        store.log(AuditAction.PROVIDER_ERROR)
        store.log(AuditAction.REVIEW_PROCESSING_ERROR)
        store.log(AuditAction.DATA_CLEANUP)
        since = datetime.now(timezone.utc) - timedelta(hours=1)
        assert store.count_logs([AuditAction.PROVIDER_ERROR, AuditAction.REVIEW_PROCESSING_ERROR], since) == 2


class TestFeedback:
    def test_resubmission_replaces(self, store):
        response_id = _save(store)
        assert store.record_feedback(response_id, "u1", "positive")
        assert store.record_feedback(response_id, "u1", "negative", "Too long")
        assert store.feedback_stats() == {"total": 1, "positive": 0, "negative": 1, "positive_rate": 0.0}

    def test_different_users_counted_separately(self, store):
        response_id = _save(store)
        store.record_feedback(response_id, "u1", "positive")
        store.record_feedback(response_id, "u2", "positive")
        store.record_feedback(response_id, "u3", "negative")
        stats = store.feedback_stats()
        assert stats["total"] == 3
        assert stats["positive_rate"] == 66.7

    def test_unknown_response(self, store):
        assert store.record_feedback(404, "u1", "positive") is False

    def test_invalid_type(self, store):
        response_id = _save(store)
        with pytest.raises(ValueError):
            store.record_feedback(response_id, "u1", "meh")


class TestStats:
    def test_aggregates(self, store):
        _save(store, provider="openai", elapsed=1.0)
        _save(store, review_id=2, provider="gemini", elapsed=3.0)
        _save(store, review_id=3, provider="fallback", elapsed=None)
        stats = store.stats()
        assert stats["total_responses"] == 3
        assert stats["by_status"] == {"pending": 3}
        assert stats["by_provider"] == {"openai": 1, "gemini": 1, "fallback": 1}
        assert stats["avg_generation_time"] == 2.0
        assert stats["recent_activity"] == 3
        assert stats["feedback"]["total"] == 0
