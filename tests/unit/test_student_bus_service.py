from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.adapters.persistence.in_memory_backend import InMemoryBackend
from src.app.context import AppContext
from src.app.services.student_bus_service import StudentBusService
from src.domain.exceptions import BackendError
from src.domain.models import BusInfo, NotificationEvent, StudentAssignment


@dataclass(slots=True)
class RecordingNotifier:
    errors: list[str] = field(default_factory=list)
    successes: list[str] = field(default_factory=list)

    async def notify(self, event: NotificationEvent) -> None:
        raise AssertionError("not expected")

    async def error(self, message: str) -> None:
        self.errors.append(message)

    async def success(self, message: str) -> None:
        self.successes.append(message)


class FailingInsertBackend(InMemoryBackend):
    async def insert_assignment(self, student_id: str, bus_id: str) -> None:
        raise BackendError("permission denied", code="42501")


class FailingDeleteBackend(InMemoryBackend):
    async def delete_assignments(self, student_id: str) -> None:
        raise BackendError("permission denied", code="42501")


class UnreachableBackend(InMemoryBackend):
    async def list_active_buses(self) -> tuple[BusInfo, ...]:
        raise BackendError("connection refused")

    async def get_assignment(self, student_id: str) -> StudentAssignment:
        raise BackendError("connection refused")


def _seed(backend: InMemoryBackend) -> InMemoryBackend:
    backend.add_bus(BusInfo(id="b1", bus_number="Bus 01", driver_name="Ravi"))
    backend.add_bus(BusInfo(id="b2", bus_number="Bus 02", driver_name="Anil"))
    backend.add_bus(BusInfo(id="b3", bus_number="Bus 03", is_active=False))
    return backend


def _service(backend: InMemoryBackend) -> tuple[StudentBusService, RecordingNotifier]:
    notifier = RecordingNotifier()
    ctx = AppContext(buses=backend, assignments=backend, location_feed=backend)
    return StudentBusService(context=ctx, notifier=notifier), notifier


def test_list_active_buses_skips_inactive() -> None:
    service, notifier = _service(_seed(InMemoryBackend()))
    buses = asyncio.run(service.list_active_buses())

    assert [b.id for b in buses] == ["b1", "b2"]
    assert notifier.errors == []


def test_list_active_buses_failure_is_a_notice() -> None:
    service, notifier = _service(UnreachableBackend())
    assert asyncio.run(service.list_active_buses()) == ()
    assert notifier.errors == ["Failed to load buses"]


def test_no_assignment_is_not_an_error() -> None:
    service, notifier = _service(_seed(InMemoryBackend()))
    assert asyncio.run(service.get_my_bus("student-1")) is None
    assert notifier.errors == []


def test_assignment_lookup_failure_is_logged_not_shown(caplog) -> None:
    service, notifier = _service(UnreachableBackend())
    assert asyncio.run(service.get_my_bus("student-1")) is None
    assert notifier.errors == []
    assert "Error loading student bus" in caplog.text


def test_selecting_again_replaces_the_assignment() -> None:
    backend = _seed(InMemoryBackend())
    service, notifier = _service(backend)

    async def run() -> StudentAssignment | None:
        await service.select_bus("student-1", "b1")
        return await service.select_bus("student-1", "b2")

    mine = asyncio.run(run())

    assert backend.assignment_count("student-1") == 1
    assert mine is not None
    assert mine.bus_id == "b2"
    assert mine.bus is not None and mine.bus.bus_number == "Bus 02"
    assert notifier.successes == ["Bus selected successfully"] * 2


def test_insert_failure_leaves_student_without_a_bus() -> None:
    backend = _seed(FailingInsertBackend())
    backend.assignments["student-1"] = [StudentAssignment(student_id="student-1", bus_id="b1")]
    service, notifier = _service(backend)

    assert asyncio.run(service.select_bus("student-1", "b2")) is None
    assert notifier.errors == ["Failed to select bus"]
    assert notifier.successes == []
    assert backend.assignment_count("student-1") == 0


def test_delete_failure_keeps_previous_assignment() -> None:
    backend = _seed(FailingDeleteBackend())
    backend.assignments["student-1"] = [StudentAssignment(student_id="student-1", bus_id="b1")]
    service, notifier = _service(backend)

    assert asyncio.run(service.select_bus("student-1", "b2")) is None
    assert notifier.errors == ["Failed to select bus"]
    mine = asyncio.run(service.get_my_bus("student-1"))
    assert mine is not None and mine.bus_id == "b1"
