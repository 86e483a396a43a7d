import pytest
from libs.common.config import get_settings
from services.attendance_service.desk import AttendanceDesk
from services.attendance_service.models import EmptySnapshotPolicy
from tests.factories import TODAY
from tests.fakes import InMemoryAttendanceBackend


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def backend() -> InMemoryAttendanceBackend:
    """
    Backend with two batches: batch-1 (s1, s2, s3) and batch-2 (s4, s5).
    """
    backend = InMemoryAttendanceBackend()
    backend.add_roster("batch-1", "s1", "s2", "s3")
    backend.add_roster("batch-2", "s4", "s5")
    return backend


@pytest.fixture
def desk(backend, today) -> AttendanceDesk:
    return AttendanceDesk(
        backend,
        policy=EmptySnapshotPolicy.RESET_ALL,
        refetch_after_update=True,
        clock=lambda: today,
    )


@pytest.fixture
def settings_env(monkeypatch):
    """
    Set environment variables for one test and rebuild settings around it.
    """

    def _apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
        return get_settings()

    yield _apply
    monkeypatch.undo()
    get_settings.cache_clear()
