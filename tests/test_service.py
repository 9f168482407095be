import logging

import pytest

from task_tracker.errors import ValidationError
from task_tracker.service import MessageCode, TaskService

from .fakes import FakeNotifier, failing_notifier


def ids(tasks):
    return [t["id"] for t in tasks]


class TestCreate:
    def test_create_starts_pending(self, service, repo, clock):
        result = service.create("alice", "  Buy milk  ", "2 liters")
        assert result.ok is True
        assert result.code is MessageCode.TASK_CREATED
        assert result.message == "Task Created Successfully"

        task = result.task
        assert task["title"] == "Buy milk"
        assert task["description"] == "2 liters"
        assert task["completed"] is False
        assert task["user_id"] == "alice"
        assert task["created_at"] == clock.now
        assert task["updated_at"] == clock.now
        assert repo.find_by_id(task["id"]) == task

    def test_create_without_description(self, service):
        task = service.create("alice", "Read book").task
        assert task["description"] is None

    @pytest.mark.parametrize("title", ["", "   ", None, "x" * 201])
    def test_create_rejects_bad_title(self, service, repo, title):
        with pytest.raises(ValidationError) as exc_info:
            service.create("alice", title, "ignored")
        assert exc_info.value.field == "title"
        assert repo.find_by_user("alice") == []


class TestGet:
    def test_owner_sees_task(self, service):
        created = service.create("alice", "Read book").task
        result = service.get("alice", created["id"])
        assert result.ok is True
        assert result.task == created

    def test_other_user_gets_not_found(self, service):
        created = service.create("alice", "Read book").task
        result = service.get("bob", created["id"])
        assert result.ok is False
        assert result.code is MessageCode.TASK_NOT_FOUND
        assert result.message == "Unable to locate the task"
        assert result.task is None

    def test_missing_task_looks_the_same_as_foreign(self, service):
        created = service.create("alice", "Read book").task
        assert service.get("bob", created["id"]) == service.get("bob", 999)


class TestUpdate:
    def test_update_overwrites_fields(self, service, clock):
        created = service.create("alice", "Initial", "A").task
        clock.advance(hours=1)

        result = service.update("alice", created["id"], " Replaced ", None, True)
        assert result.ok is True
        assert result.message == "Task Updated Successfully"
        task = result.task
        assert task["title"] == "Replaced"
        assert task["description"] is None
        assert task["completed"] is True
        assert task["created_at"] == created["created_at"]
        assert task["updated_at"] == clock.now

    def test_update_can_reopen_without_email(self, service, notifier):
        created = service.create("alice", "Write report").task
        service.complete("alice", "alice@example.com", created["id"])
        assert len(notifier.sent) == 1

        result = service.update("alice", created["id"], "Write report", None, False)
        assert result.task["completed"] is False
        assert len(notifier.sent) == 1

        pending, completed = service.list_active("alice")
        assert ids(pending) == [created["id"]]
        assert completed == []

    def test_update_foreign_task_is_not_found_and_untouched(self, service, repo):
        created = service.create("alice", "Private", "mine").task

        result = service.update("bob", created["id"], "Hijacked", "theirs", True)
        assert result.ok is False
        assert result.code is MessageCode.TASK_NOT_FOUND
        assert repo.find_by_id(created["id"]) == created

    def test_update_rejects_blank_title(self, service, repo):
        created = service.create("alice", "Keep me").task
        with pytest.raises(ValidationError):
            service.update("alice", created["id"], "  ", None, False)
        assert repo.find_by_id(created["id"])["title"] == "Keep me"


class TestDelete:
    def test_delete_twice(self, service, repo):
        created = service.create("alice", "To delete").task

        first = service.delete("alice", created["id"])
        assert first.ok is True
        assert first.message == "Task Deleted Successfully"
        assert repo.find_by_id(created["id"]) is None

        second = service.delete("alice", created["id"])
        assert second.ok is False
        assert second.code is MessageCode.TASK_NOT_FOUND

    def test_delete_foreign_task_keeps_it(self, service, repo):
        created = service.create("alice", "Mine").task
        assert service.delete("bob", created["id"]).ok is False
        assert repo.find_by_id(created["id"]) is not None


class TestComplete:
    def test_complete_marks_done_and_emails(self, service, notifier, clock):
        created = service.create("alice", "Pay bills", "Electricity").task
        clock.advance(minutes=5)

        result = service.complete("alice", "alice@example.com", created["id"])
        assert result.ok is True
        assert result.code is MessageCode.TASK_COMPLETED
        assert result.message == "Task marked as completed and email sent!"
        assert result.task["completed"] is True
        assert result.task["updated_at"] == clock.now

        assert len(notifier.sent) == 1
        sent = notifier.sent[0]
        assert sent.recipient == "alice@example.com"
        assert sent.title == "Pay bills"
        assert sent.description == "Electricity"

    def test_complete_survives_notification_error(self, repo, clock, caplog):
        service = TaskService(repo, failing_notifier(), clock=clock)
        created = service.create("alice", "Pay bills").task

        with caplog.at_level(logging.ERROR, logger="task_tracker.service"):
            result = service.complete("alice", "alice@example.com", created["id"])

        assert result.ok is True
        assert repo.find_by_id(created["id"])["completed"] is True
        assert any("Failed to send email" in r.getMessage() for r in caplog.records)

    def test_complete_survives_unexpected_notifier_crash(self, repo, clock):
        service = TaskService(repo, FakeNotifier(error=RuntimeError("boom")), clock=clock)
        created = service.create("alice", "Pay bills").task

        result = service.complete("alice", None, created["id"])
        assert result.ok is True
        assert repo.find_by_id(created["id"])["completed"] is True

    def test_complete_twice_sends_email_again(self, service, notifier):
        created = service.create("alice", "Water plants").task
        service.complete("alice", "alice@example.com", created["id"])
        result = service.complete("alice", "alice@example.com", created["id"])
        assert result.ok is True
        assert len(notifier.sent) == 2

    def test_complete_foreign_task_sends_nothing(self, service, repo, notifier):
        created = service.create("alice", "Mine").task
        result = service.complete("bob", "bob@example.com", created["id"])
        assert result.ok is False
        assert notifier.sent == []
        assert repo.find_by_id(created["id"])["completed"] is False


class TestListing:
    def test_list_active_partitions_user_tasks(self, service, repo):
        a = service.create("alice", "A").task
        b = service.create("alice", "B").task
        c = service.create("alice", "C").task
        service.create("bob", "Not alice's")
        service.complete("alice", None, b["id"])

        pending, completed = service.list_active("alice")
        assert ids(pending) == [a["id"], c["id"]]
        assert ids(completed) == [b["id"]]
        assert set(ids(pending)).isdisjoint(ids(completed))

        everything = {t["id"] for t in repo.find_by_user("alice")}
        assert set(ids(pending)) | set(ids(completed)) == everything

    def test_list_active_empty(self, service):
        assert service.list_active("nobody") == ([], [])

    def test_list_completed_only_own(self, service):
        mine = service.create("alice", "Mine").task
        theirs = service.create("bob", "Theirs").task
        service.complete("alice", None, mine["id"])
        service.complete("bob", None, theirs["id"])

        assert ids(service.list_completed("alice")) == [mine["id"]]

    def test_dashboard(self, service, clock):
        done = service.create("alice", "Done", "with notes").task
        service.create("alice", "Open 1")
        service.create("alice", "Open 2")
        service.create("alice", "Open 3")
        clock.advance(days=1)
        service.complete("alice", None, done["id"])

        board = service.dashboard("alice")
        assert len(board.pending) == 3
        assert ids(board.completed) == [done["id"]]
        # tasks were created yesterday
        assert board.daily_completion == 0.0
        assert board.weekly_completion == 25.0
        assert board.monthly_completion == 25.0
        assert board.calendar == [
            {"title": "Done", "start": "2026-10-15", "description": "with notes"},
        ]
