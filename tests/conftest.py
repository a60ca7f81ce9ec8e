import asyncio
from datetime import date
from typing import Any

import pytest

from src.booking.wizard import BookingWizard
from src.clinic_client.types import AvailableSlotsData, Clinic, Doctor, NewAppointment

SATURDAY = date(2026, 10, 17)

CLINIC: Clinic = {"_id": "clinic-1", "name": "Phòng khám Đa khoa An Bình", "address": "12 Lê Lợi"}

DOCTOR_A: Doctor = {
    "_id": "doctor-a",
    "fullName": "BS. Nguyễn Văn A",
    "specialty": "Nội khoa",
    "experience": 10,
    "consultationFee": 200000,
    "workingDays": [1, 2, 3, 4, 5],
}

DOCTOR_B: Doctor = {
    "_id": "doctor-b",
    "fullName": "BS. Trần Thị B",
    "specialty": "Nhi khoa",
    "experience": 5,
    "consultationFee": 150000,
    "workingDays": [1, 3, 5, 6],
}


def slots_response(doctor_id: str, *slots: tuple[str, bool]) -> AvailableSlotsData:
    return {
        "availableSlots": [
            {
                "doctor": {"id": doctor_id, "fullName": "", "specialty": ""},
                "slots": [{"time": time, "available": available} for time, available in slots],
            }
        ]
    }


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, str | None]] = []

    async def success(self, message: str, title: str | None = None) -> None:
        self.events.append(("success", message, title))

    async def error(self, message: str, title: str | None = None) -> None:
        self.events.append(("error", message, title))

    async def warning(self, message: str, title: str | None = None) -> None:
        self.events.append(("warning", message, title))

    async def info(self, message: str, title: str | None = None) -> None:
        self.events.append(("info", message, title))

    def messages(self, kind: str) -> list[str]:
        return [message for event_kind, message, _title in self.events if event_kind == kind]


class RecordingNavigator:
    def __init__(self) -> None:
        self.paths: list[str] = []

    async def navigate(self, path: str) -> None:
        self.paths.append(path)


class FakeClinicApiClient:
    def __init__(self, doctors: list[Doctor] | None = None) -> None:
        self.clinic = CLINIC
        self.doctors = doctors if doctors is not None else [DOCTOR_A, DOCTOR_B]
        self.slots: dict[tuple[str, str], AvailableSlotsData] = {}
        self.slot_gates: dict[str, asyncio.Event] = {}
        self.slot_requests: list[tuple[str, str, str]] = []
        self.created: list[NewAppointment] = []

        self.load_error: Exception | None = None
        self.slots_error: Exception | None = None
        self.create_error: Exception | None = None

    async def get_clinic(self, clinic_id: str) -> Clinic:
        if self.load_error:
            raise self.load_error
        return self.clinic

    async def get_doctors(self, clinic_id: str) -> list[Doctor]:
        if self.load_error:
            raise self.load_error
        return self.doctors

    async def get_available_slots(self, clinic_id: str, day: str, doctor_id: str) -> AvailableSlotsData:
        self.slot_requests.append((clinic_id, day, doctor_id))
        if day in self.slot_gates:
            await self.slot_gates[day].wait()
        if self.slots_error:
            raise self.slots_error
        return self.slots.get((doctor_id, day), {"availableSlots": []})

    async def create_appointment(self, appointment: NewAppointment) -> dict[str, Any]:
        if self.create_error:
            raise self.create_error
        self.created.append(appointment)
        return {"_id": "appointment-1", **appointment, "status": "scheduled"}


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture
def api_client() -> FakeClinicApiClient:
    return FakeClinicApiClient()


@pytest.fixture
def wizard(
    api_client: FakeClinicApiClient, notifier: RecordingNotifier, navigator: RecordingNavigator
) -> BookingWizard:
    return BookingWizard(api_client, CLINIC["_id"], notifier, navigator, today=lambda: SATURDAY)  # type: ignore[arg-type]
