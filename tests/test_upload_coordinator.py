"""
Tests for UploadCoordinator.

Tests cover:
- Batch start and record creation
- Progress reporting rules
- Terminal transitions
- Expiry of finished records
- Cancellation handles
"""

import pytest

from filebox.uploads import FileDescriptor, UploadCoordinator, UploadStatus


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def coordinator(clock):
    """Create a fresh coordinator on a fake clock for each test."""
    return UploadCoordinator(clock=clock)


class TestBeginBatch:
    def test_records_start_uploading(self, coordinator):
        records = coordinator.begin_batch(
            [FileDescriptor(name="a.txt", size=3), FileDescriptor(name="b.txt")]
        )

        assert [r.name for r in records] == ["a.txt", "b.txt"]
        assert all(r.status == UploadStatus.UPLOADING for r in records)
        assert all(r.progress == 0 for r in records)
        assert all(r.error is None for r in records)

    def test_ids_are_unique(self, coordinator):
        records = coordinator.begin_batch(["same.txt"] * 50)
        assert len({r.id for r in records}) == 50

    def test_returned_records_are_copies(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        record.progress = 99

        assert coordinator.get_upload(record.id).progress == 0

    def test_new_batch_clears_finished_records(self, coordinator):
        done, running = coordinator.begin_batch(["done.txt", "running.txt"])
        coordinator.report_terminal(done.id, UploadStatus.DONE)

        coordinator.begin_batch(["next.txt"])

        ids = {r.id for r in coordinator.get_uploads()}
        assert done.id not in ids
        assert running.id in ids
        assert len(ids) == 2


class TestProgress:
    def test_progress_is_recorded(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_progress(record.id, 40)
        assert coordinator.get_upload(record.id).progress == 40

    def test_progress_never_goes_backwards(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_progress(record.id, 60)
        coordinator.report_progress(record.id, 30)
        assert coordinator.get_upload(record.id).progress == 60

    @pytest.mark.parametrize("percent", [-1, 101])
    def test_out_of_range_is_ignored(self, coordinator, percent):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_progress(record.id, percent)
        assert coordinator.get_upload(record.id).progress == 0

    def test_unknown_id_is_ignored(self, coordinator):
        coordinator.report_progress("nope", 50)
        assert coordinator.get_uploads() == []

    def test_progress_after_terminal_is_ignored(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_terminal(record.id, UploadStatus.ERROR, "boom")
        coordinator.report_progress(record.id, 80)

        assert coordinator.get_upload(record.id).progress == 0


class TestTerminal:
    def test_done_sets_full_progress(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_progress(record.id, 20)
        coordinator.report_terminal(record.id, UploadStatus.DONE)

        finished = coordinator.get_upload(record.id)
        assert finished.status == UploadStatus.DONE
        assert finished.progress == 100
        assert finished.error is None

    def test_error_keeps_message_and_progress(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_progress(record.id, 20)
        coordinator.report_terminal(record.id, UploadStatus.ERROR, "network failure")

        failed = coordinator.get_upload(record.id)
        assert failed.status == UploadStatus.ERROR
        assert failed.error == "network failure"
        assert failed.progress == 20

    def test_only_first_terminal_report_counts(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_terminal(record.id, UploadStatus.ERROR, "first")
        coordinator.report_terminal(record.id, UploadStatus.DONE)

        assert coordinator.get_upload(record.id).status == UploadStatus.ERROR
        assert coordinator.get_upload(record.id).error == "first"

    def test_uploading_is_not_terminal(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        with pytest.raises(ValueError):
            coordinator.report_terminal(record.id, UploadStatus.UPLOADING)

    def test_active_uploads(self, coordinator):
        a, b = coordinator.begin_batch(["a.txt", "b.txt"])
        coordinator.report_terminal(a.id, UploadStatus.DONE)

        assert [r.id for r in coordinator.get_active_uploads()] == [b.id]


class TestExpiry:
    def test_failed_record_expires_after_delay(self, coordinator, clock):
        first, second = coordinator.begin_batch(["a.txt", "b.txt"])
        coordinator.report_terminal(first.id, UploadStatus.ERROR, "network failure")

        clock.advance(5)

        ids = [r.id for r in coordinator.get_uploads()]
        assert first.id not in ids
        assert second.id in ids

    def test_record_visible_before_delay(self, coordinator, clock):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_terminal(record.id, UploadStatus.DONE)

        clock.advance(4.9)

        assert coordinator.get_upload(record.id) is not None

    def test_uploading_records_never_expire(self, coordinator, clock):
        (record,) = coordinator.begin_batch(["a.txt"])
        clock.advance(3600)
        assert coordinator.get_upload(record.id).status == UploadStatus.UPLOADING

    def test_custom_delay(self, clock):
        coordinator = UploadCoordinator(expiry_delay=1, clock=clock)
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_terminal(record.id, UploadStatus.DONE)

        clock.advance(1)

        assert coordinator.get_upload(record.id) is None


class TestCancellation:
    def test_cancel_invokes_handle_once(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        calls = []
        coordinator.register_cancellation_handle(record.id, lambda: calls.append(1))

        assert coordinator.cancel(record.id) is True
        assert coordinator.cancel(record.id) is False
        assert calls == [1]

    def test_cancel_unknown_id(self, coordinator):
        assert coordinator.cancel("nope") is False

    def test_cancel_after_terminal_is_noop(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        calls = []
        coordinator.register_cancellation_handle(record.id, lambda: calls.append(1))
        coordinator.report_terminal(record.id, UploadStatus.DONE)

        assert coordinator.cancel(record.id) is False
        assert calls == []

    def test_handle_not_registered_for_finished_record(self, coordinator):
        (record,) = coordinator.begin_batch(["a.txt"])
        coordinator.report_terminal(record.id, UploadStatus.DONE)
        coordinator.register_cancellation_handle(record.id, lambda: None)

        assert coordinator.cancel(record.id) is False

    def test_cancel_does_not_affect_siblings(self, coordinator):
        a, b = coordinator.begin_batch(["a.txt", "b.txt"])
        cancelled = []
        coordinator.register_cancellation_handle(a.id, lambda: cancelled.append("a"))
        coordinator.register_cancellation_handle(b.id, lambda: cancelled.append("b"))

        coordinator.cancel(a.id)

        assert cancelled == ["a"]
        assert coordinator.get_upload(b.id).status == UploadStatus.UPLOADING
