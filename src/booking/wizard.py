import asyncio
import logging
from datetime import date
from enum import IntEnum
from typing import Callable, cast

import httpx

from src.booking import messages
from src.booking.calendar_days import (
    CalendarDay,
    generate_calendar_days,
    is_day_selectable,
    next_month,
    prev_month,
)
from src.booking.exceptions import StepGuardError
from src.booking.ports import Navigator, Notifier
from src.clinic_client.client import ClinicApiClient
from src.clinic_client.exceptions import AuthenticationError, ClinicApiError
from src.clinic_client.types import AppointmentType, AvailableSlotsData, Clinic, Doctor, NewAppointment

logger = logging.getLogger(__name__)

APPOINTMENT_TYPES: tuple[AppointmentType, ...] = ("consultation", "checkup", "follow-up")
DEFAULT_APPOINTMENT_TYPE: AppointmentType = "consultation"

REQUEST_ERRORS = (ClinicApiError, AuthenticationError, httpx.HTTPError)


class Step(IntEnum):
    SELECT_DOCTOR = 1
    SELECT_DATE_TIME = 2
    CONFIRM = 3


class BookingWizard:
    """Three step booking flow for a single clinic: doctor, date and slot, confirmation.

    The wizard owns the selection state only. Notifications and navigation go
    through the injected ``notifier`` and ``navigator`` so the same flow can be
    driven from the CLI, the Telegram bot or a test.
    """

    def __init__(
        self,
        client: ClinicApiClient,
        clinic_id: str,
        notifier: Notifier,
        navigator: Navigator,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.clinic_id = clinic_id
        self.notifier = notifier
        self.navigator = navigator
        self._today = today

        self.step = Step.SELECT_DOCTOR
        self.clinic: Clinic | None = None
        self.doctors: list[Doctor] = []
        self.available_slots: list[str] = []

        self.selected_doctor: Doctor | None = None
        self.selected_date = ""
        self.selected_slot = ""
        self.appointment_type: AppointmentType = DEFAULT_APPOINTMENT_TYPE
        self.reason = ""

        self.current_month = today().replace(day=1)
        self.submitting = False
        self.finished = False
        self._slots_request_token = 0

    @property
    def today(self) -> date:
        return self._today()

    @property
    def working_days(self) -> list[int] | None:
        if self.selected_doctor is None:
            return None
        return self.selected_doctor.get("workingDays")

    async def load(self) -> bool:
        try:
            self.clinic, self.doctors = await asyncio.gather(
                self.client.get_clinic(self.clinic_id),
                self.client.get_doctors(self.clinic_id),
            )
        except REQUEST_ERRORS:
            logger.exception("Could not load clinic %s", self.clinic_id)
            await self.notifier.error(messages.LOAD_CLINIC_FAILED)
            await self._leave(messages.CLINICS_ROUTE)
            return False
        return True

    async def select_doctor(self, doctor: Doctor) -> None:
        self.selected_doctor = doctor
        self.selected_slot = ""
        self.selected_date = ""
        self.available_slots = []
        self._slots_request_token += 1
        await self.notifier.info(messages.DOCTOR_SELECTED.format(doctor_name=doctor["fullName"]))

    def find_doctor(self, doctor_id: str) -> Doctor | None:
        return next((doctor for doctor in self.doctors if doctor["_id"] == doctor_id), None)

    async def select_date(self, selected_date: str) -> None:
        if not is_day_selectable(date.fromisoformat(selected_date), self.working_days, self.today):
            raise ValueError(f"{selected_date} is not a selectable day")

        self.selected_date = selected_date
        self.selected_slot = ""
        self.available_slots = []
        self._slots_request_token += 1

        if self.selected_doctor is not None:
            await self.fetch_available_slots()

    def select_slot(self, slot: str) -> None:
        if slot not in self.available_slots:
            raise ValueError(f"{slot} is not an available slot")
        self.selected_slot = slot

    def set_appointment_type(self, appointment_type: str) -> None:
        if appointment_type not in APPOINTMENT_TYPES:
            raise ValueError(f"Unknown appointment type: {appointment_type}")
        self.appointment_type = cast(AppointmentType, appointment_type)

    def set_reason(self, reason: str) -> None:
        self.reason = reason.strip()

    async def fetch_available_slots(self) -> None:
        if self.selected_doctor is None or not self.selected_date:
            return

        self._slots_request_token += 1
        request_token = self._slots_request_token
        doctor_id = self.selected_doctor["_id"]

        try:
            response = await self.client.get_available_slots(self.clinic_id, self.selected_date, doctor_id)
        except REQUEST_ERRORS:
            if request_token == self._slots_request_token:
                logger.exception("Error fetching slots for doctor %s on %s", doctor_id, self.selected_date)
                await self.notifier.error(messages.LOAD_SLOTS_FAILED)
            return

        if request_token != self._slots_request_token:
            logger.debug("Dropping stale slots response for doctor %s", doctor_id)
            return

        slots = self._slots_for_doctor(response, doctor_id)
        if slots is None:
            logger.warning(
                "Slots response for %s has no entry for doctor %s", self.selected_date, doctor_id
            )
            self.available_slots = []
            await self.notifier.warning(messages.SLOTS_FOR_OTHER_DOCTOR)
            return

        self.available_slots = slots

    @staticmethod
    def _slots_for_doctor(response: AvailableSlotsData, doctor_id: str) -> list[str] | None:
        matched = next(
            (item for item in response["availableSlots"] if str((item.get("doctor") or {}).get("id")) == doctor_id),
            None,
        )
        if matched is None:
            return None
        return [slot["time"] for slot in matched.get("slots", []) if slot.get("available") is True]

    @property
    def can_continue(self) -> bool:
        if self.step == Step.SELECT_DOCTOR:
            return self.selected_doctor is not None
        if self.step == Step.SELECT_DATE_TIME:
            return bool(self.selected_date) and bool(self.selected_slot)
        return not self.submitting

    def next_step(self) -> Step:
        if self.step == Step.CONFIRM:
            raise StepGuardError("Already on the confirmation step, submit instead")
        if not self.can_continue:
            raise StepGuardError(f"Step {self.step} is missing required selections")

        self.step = Step(self.step + 1)
        return self.step

    async def back(self) -> Step | None:
        if self.step == Step.SELECT_DOCTOR:
            await self._leave(messages.CLINICS_ROUTE)
            return None

        self.step = Step(self.step - 1)
        return self.step

    def prev_month(self) -> None:
        self.current_month = prev_month(self.current_month)

    def next_month(self) -> None:
        self.current_month = next_month(self.current_month)

    def calendar_days(self) -> list[CalendarDay]:
        return generate_calendar_days(self.current_month, self.working_days, self.today, self.selected_date)

    def build_appointment(self) -> NewAppointment:
        doctor = cast(Doctor, self.selected_doctor)
        return NewAppointment(
            clinicId=self.clinic_id,
            doctorId=doctor["_id"],
            appointmentDate=self.selected_date,
            timeSlot=self.selected_slot,
            type=self.appointment_type,
            reason=self.reason,
        )

    async def submit(self) -> bool:
        if self.submitting:
            return False

        if self.selected_doctor is None:
            await self.notifier.error(messages.DOCTOR_REQUIRED)
            return False
        if not self.selected_date or not self.selected_slot:
            await self.notifier.error(messages.DATE_AND_SLOT_REQUIRED)
            return False

        self.submitting = True
        try:
            await self.client.create_appointment(self.build_appointment())
        except ClinicApiError as e:
            logger.warning("Appointment rejected: %s", e.message)
            await self.notifier.error(e.message or messages.BOOKING_FAILED)
            return False
        except AuthenticationError:
            logger.warning("Session expired while booking for %s", self.clinic_id)
            await self.notifier.error(messages.BOOKING_FAILED)
            return False
        except httpx.HTTPError:
            logger.exception("Appointment request failed")
            await self.notifier.error(messages.BOOKING_FAILED)
            return False
        finally:
            self.submitting = False

        await self.notifier.success(messages.BOOKING_SUCCEEDED, messages.BOOKING_SUCCEEDED_TITLE)
        await self._leave(messages.APPOINTMENTS_ROUTE)
        return True

    def summary(self) -> dict[str, str]:
        doctor = self.selected_doctor or cast(Doctor, {})
        clinic = self.clinic or cast(Clinic, {})
        fee = doctor.get("consultationFee")

        return {
            "doctor": doctor.get("fullName", ""),
            "specialty": doctor.get("specialty", ""),
            "clinic": clinic.get("name", ""),
            "date": date.fromisoformat(self.selected_date).strftime("%d-%m-%Y") if self.selected_date else "",
            "time": self.selected_slot,
            "fee": f"{fee:,}đ" if fee is not None else "",
            "type": messages.APPOINTMENT_TYPE_LABELS[self.appointment_type][0],
        }

    async def _leave(self, path: str) -> None:
        self.finished = True
        await self.navigator.navigate(path)
