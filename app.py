import os
from datetime import date
from typing import Any, Callable, TypeVar

import asyncclick as click
import httpx
from dotenv import load_dotenv
from pick import pick

from src.booking import messages
from src.booking.calendar_days import first_selectable_day
from src.booking.wizard import APPOINTMENT_TYPES, BookingWizard, Step
from src.clinic_client.client import ClinicApiClient
from src.clinic_client.exceptions import ClinicApiError, IncorrectLoginError
from src.clinic_client.types import Clinic

load_dotenv()

F = TypeVar("F", bound=Callable[..., Any])

BACK_TO_CLINICS = "← Danh sách phòng khám"
BACK = "← Quay lại"
PREVIOUS_MONTH = "« Tháng trước"
NEXT_MONTH = "Tháng sau »"
OTHER_DATE = "← Chọn ngày khác"
CONFIRM_BOOKING = "Xác nhận đặt lịch"


class ConsoleNotifier:
    async def success(self, message: str, title: str | None = None) -> None:
        click.secho(f"{title}: {message}" if title else message, fg="green")

    async def error(self, message: str, title: str | None = None) -> None:
        click.secho(f"{title}: {message}" if title else message, fg="red")

    async def warning(self, message: str, title: str | None = None) -> None:
        click.secho(f"{title}: {message}" if title else message, fg="yellow")

    async def info(self, message: str, title: str | None = None) -> None:
        click.secho(f"{title}: {message}" if title else message, fg="blue")


class ConsoleNavigator:
    def __init__(self) -> None:
        self.path: str | None = None

    async def navigate(self, path: str) -> None:
        self.path = path


def credentials(func: F) -> F:
    func = click.option(
        "--password",
        "-p",
        prompt="Password",
        help="Account password",
        hide_input=True,
        type=str,
        default=lambda: os.getenv("CLINIC_PASSWORD", ""),
        show_default="Value from .env or empty",
    )(func)
    func = click.option(
        "--email",
        "-e",
        prompt="Email",
        help="Account e-mail",
        type=str,
        default=lambda: os.getenv("CLINIC_EMAIL", ""),
        show_default="Value from .env or empty",
    )(func)
    return func


async def logged_in_client(email: str, password: str) -> ClinicApiClient | None:
    client = ClinicApiClient(email, password)
    try:
        await client.log_in()
    except IncorrectLoginError:
        click.secho("Unsuccessful logging in. Check e-mail and password", fg="red")
        return None
    return client


def pick_option(options: list[str], title: str) -> int:
    _option, index = pick(options, title)
    return int(index)  # type: ignore[arg-type]


async def choose_doctor(wizard: BookingWizard) -> None:
    if not wizard.doctors:
        click.secho(messages.NO_DOCTORS, fg="yellow")
        await wizard.back()
        return

    options = [
        f"{doctor['fullName']} - {doctor.get('specialty', '')} ({doctor.get('experience', 0)} năm kinh nghiệm)"
        for doctor in wizard.doctors
    ]
    index = pick_option([*options, BACK_TO_CLINICS], messages.STEP_LABELS[Step.SELECT_DOCTOR])
    if index == len(options):
        await wizard.back()
        return

    await wizard.select_doctor(wizard.doctors[index])
    wizard.next_step()


async def choose_date_and_slot(wizard: BookingWizard) -> None:
    while True:
        selectable_dates = [day.date for day in wizard.calendar_days() if day.date and not day.disabled]
        if not selectable_dates:
            next_available = first_selectable_day(wizard.current_month, wizard.working_days, wizard.today)
            if next_available:
                click.secho(f"Ngày khám gần nhất: {date.fromisoformat(next_available).strftime('%d-%m-%Y')}", fg="yellow")
        options = [date.fromisoformat(day).strftime("%a %d-%m-%Y") for day in selectable_dates]
        title = f"{messages.STEP_LABELS[Step.SELECT_DATE_TIME]} - {wizard.current_month.strftime('%m/%Y')}"

        index = pick_option([*options, PREVIOUS_MONTH, NEXT_MONTH, BACK], title)
        if index == len(options):
            wizard.prev_month()
            continue
        if index == len(options) + 1:
            wizard.next_month()
            continue
        if index == len(options) + 2:
            await wizard.back()
            return

        await wizard.select_date(selectable_dates[index])
        if not wizard.available_slots:
            click.secho(messages.NO_SLOTS, fg="yellow")
            continue

        slot_index = pick_option([*wizard.available_slots, OTHER_DATE], f"Khung giờ khả dụng - {options[index]}")
        if slot_index == len(wizard.available_slots):
            continue

        wizard.select_slot(wizard.available_slots[slot_index])
        wizard.next_step()
        return


async def confirm_booking(wizard: BookingWizard) -> None:
    summary = wizard.summary()
    click.secho("-----------------------", fg="yellow")
    click.secho(f"Bác sĩ: {summary['doctor']} ({summary['specialty']})", fg="green")
    click.secho(f"Phòng khám: {summary['clinic']}", fg="green")
    click.secho(f"Ngày khám: {summary['date']}", fg="green")
    click.secho(f"Giờ khám: {summary['time']}", fg="green")
    click.secho(f"Phí khám: {summary['fee']}", fg="green")

    type_options = [" - ".join(messages.APPOINTMENT_TYPE_LABELS[value]) for value in APPOINTMENT_TYPES]
    wizard.set_appointment_type(APPOINTMENT_TYPES[pick_option(type_options, "Loại khám")])
    wizard.set_reason(click.prompt("Lý do khám (tùy chọn)", type=str, default=wizard.reason, show_default=False))

    if pick_option([CONFIRM_BOOKING, BACK], messages.STEP_LABELS[Step.CONFIRM]) == 1:
        await wizard.back()
        return

    await wizard.submit()


@click.group()
def cli() -> None:
    pass


@cli.command()
@credentials
@click.option("--specialty", "-s", help="Only clinics with this specialty", type=str)
async def clinics(email: str, password: str, specialty: str | None) -> None:
    client = await logged_in_client(email, password)
    if client is None:
        return

    all_clinics = await client.get_clinics(limit=100, specialty=specialty)
    if not all_clinics:
        click.echo("No clinics found")
    for clinic in all_clinics:
        click.secho("-----------------------", fg="yellow")
        click.secho(f"ID: {clinic['_id']}", fg="green")
        click.secho(f"Clinic: {clinic['name']}", fg="green")
        click.secho(f"Address: {clinic.get('address', '')}", fg="green")


@cli.command()
@credentials
@click.option("--clinic-id", "-c", help="Clinic ID", type=str)
async def book(email: str, password: str, clinic_id: str | None) -> None:
    client = await logged_in_client(email, password)
    if client is None:
        return

    navigator = ConsoleNavigator()

    while True:
        if clinic_id is None:
            all_clinics: list[Clinic] = await client.get_clinics(limit=100)
            if not all_clinics:
                click.secho("No clinics found", fg="red")
                return
            index = pick_option([clinic["name"] for clinic in all_clinics], "Select the clinic")
            clinic_id = all_clinics[index]["_id"]

        wizard = BookingWizard(client, clinic_id, ConsoleNotifier(), navigator)
        if not await wizard.load():
            return
        click.secho(f"Selected clinic: {wizard.clinic['name'] if wizard.clinic else clinic_id}", fg="green")

        while not wizard.finished:
            if wizard.step == Step.SELECT_DOCTOR:
                await choose_doctor(wizard)
            elif wizard.step == Step.SELECT_DATE_TIME:
                await choose_date_and_slot(wizard)
            else:
                await confirm_booking(wizard)

        if navigator.path != messages.CLINICS_ROUTE:
            return
        clinic_id = None


@cli.command()
@credentials
async def future_appointments(email: str, password: str) -> None:
    client = await logged_in_client(email, password)
    if client is None:
        return

    upcoming = await client.get_upcoming_appointments()
    if not upcoming:
        click.echo("No future appointments")
    for appointment in upcoming:
        appointment_date = date.fromisoformat(appointment["appointmentDate"][:10])
        click.secho("-----------------------", fg="yellow")
        click.secho(f"ID: {appointment['_id']}", fg="green")
        click.secho(f"Clinic: {appointment['clinicId']['name']}", fg="green")
        click.secho(f"Doctor: {appointment['doctorId']['fullName']}", fg="green")
        click.secho(f"Date: {appointment['timeSlot']} {appointment_date.strftime('%d-%m-%Y')}", fg="green")
        click.secho(f"Status: {appointment['status']}", fg="green")


@cli.command()
@credentials
@click.argument("appointment_id", type=str)
@click.option("--reason", "-r", help="Cancellation reason", type=str, default="")
async def cancel_appointment(email: str, password: str, appointment_id: str, reason: str) -> None:
    client = await logged_in_client(email, password)
    if client is None:
        return

    try:
        await client.cancel_appointment(appointment_id, reason)
    except ClinicApiError as e:
        click.secho(e.message or "Could not cancel the appointment", fg="red")
        return
    except httpx.HTTPError:
        click.secho("Something went wrong with the API. Try again later.", fg="red")
        return

    click.secho("Appointment cancelled", fg="green")


if __name__ == "__main__":
    cli()
