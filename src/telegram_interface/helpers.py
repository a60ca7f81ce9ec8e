from datetime import date, datetime

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from src.booking import messages
from src.booking.calendar_days import DAYS_IN_WEEK, WEEKDAY_LABELS
from src.booking.wizard import APPOINTMENT_TYPES, BookingWizard, Step
from src.clinic_client.types import AppointmentItem, Clinic

IGNORE = "ignore"
BACK = "back"
NEXT = "next"
SUBMIT = "submit"
PREVIOUS_MONTH = "month_prev"
NEXT_MONTH = "month_next"

CLINIC_PREFIX = "clinic:"
DOCTOR_PREFIX = "doctor:"
DATE_PREFIX = "date:"
SLOT_PREFIX = "slot:"
TYPE_PREFIX = "type:"
CANCEL_PREFIX = "cancel:"

# Every wizard callback except the cancel buttons of appointment messages
BOOK_CALLBACK_PATTERN = f"^(?!{CANCEL_PREFIX})"

SLOTS_PER_ROW = 4


def back_button(wizard: BookingWizard) -> InlineKeyboardButton:
    label = "Quay lại" if wizard.step > Step.SELECT_DOCTOR else "Danh sách phòng khám"
    return InlineKeyboardButton(f"← {label}", callback_data=BACK)


def continue_button() -> InlineKeyboardButton:
    return InlineKeyboardButton("Tiếp tục →", callback_data=NEXT)


def prepare_clinic_keyboard(clinics: list[Clinic]) -> InlineKeyboardMarkup:
    keyboard = [
        [InlineKeyboardButton(clinic["name"], callback_data=f"{CLINIC_PREFIX}{clinic['_id']}")] for clinic in clinics
    ]
    return InlineKeyboardMarkup(keyboard)


def prepare_doctor_keyboard(wizard: BookingWizard) -> InlineKeyboardMarkup:
    selected_id = wizard.selected_doctor["_id"] if wizard.selected_doctor else None

    doctor_buttons = [
        [
            InlineKeyboardButton(
                f"{'✅ ' if doctor['_id'] == selected_id else ''}{doctor['fullName']} - {doctor.get('specialty', '')}",
                callback_data=f"{DOCTOR_PREFIX}{doctor['_id']}",
            )
        ]
        for doctor in wizard.doctors
    ]
    navigation = [back_button(wizard)]
    if wizard.can_continue:
        navigation.append(continue_button())

    return InlineKeyboardMarkup([*doctor_buttons, navigation])


def calendar_day_label(day: int | None, disabled: bool, is_today: bool, is_selected: bool) -> str:
    if day is None:
        return " "
    if is_selected:
        return f"[{day}]"
    if disabled:
        return "·"
    if is_today:
        return f"*{day}"
    return str(day)


def prepare_calendar_rows(wizard: BookingWizard) -> list[list[InlineKeyboardButton]]:
    cells = [
        InlineKeyboardButton(
            calendar_day_label(day.day, day.disabled, day.is_today, day.is_selected),
            callback_data=f"{DATE_PREFIX}{day.date}" if day.date and not day.disabled else IGNORE,
        )
        for day in wizard.calendar_days()
    ]
    while len(cells) % DAYS_IN_WEEK:
        cells.append(InlineKeyboardButton(" ", callback_data=IGNORE))

    return [
        [
            InlineKeyboardButton("«", callback_data=PREVIOUS_MONTH),
            InlineKeyboardButton(wizard.current_month.strftime("%m/%Y"), callback_data=IGNORE),
            InlineKeyboardButton("»", callback_data=NEXT_MONTH),
        ],
        [InlineKeyboardButton(label, callback_data=IGNORE) for label in WEEKDAY_LABELS],
        *[cells[index : index + DAYS_IN_WEEK] for index in range(0, len(cells), DAYS_IN_WEEK)],
    ]


def prepare_slot_rows(wizard: BookingWizard) -> list[list[InlineKeyboardButton]]:
    buttons = [
        InlineKeyboardButton(f"✅ {slot}" if slot == wizard.selected_slot else slot, callback_data=f"{SLOT_PREFIX}{slot}")
        for slot in wizard.available_slots
    ]
    return [buttons[index : index + SLOTS_PER_ROW] for index in range(0, len(buttons), SLOTS_PER_ROW)]


def prepare_date_time_keyboard(wizard: BookingWizard) -> InlineKeyboardMarkup:
    navigation = [back_button(wizard)]
    if wizard.can_continue:
        navigation.append(continue_button())

    return InlineKeyboardMarkup([*prepare_calendar_rows(wizard), *prepare_slot_rows(wizard), navigation])


def prepare_confirm_keyboard(wizard: BookingWizard) -> InlineKeyboardMarkup:
    type_buttons = [
        InlineKeyboardButton(
            f"{'✅ ' if value == wizard.appointment_type else ''}{messages.APPOINTMENT_TYPE_LABELS[value][0]}",
            callback_data=f"{TYPE_PREFIX}{value}",
        )
        for value in APPOINTMENT_TYPES
    ]
    keyboard = [
        type_buttons,
        [back_button(wizard), InlineKeyboardButton("Xác nhận đặt lịch", callback_data=SUBMIT)],
    ]
    return InlineKeyboardMarkup(keyboard)


def get_summary_text(wizard: BookingWizard) -> str:
    summary = wizard.summary()

    summary_text = f"Bác sĩ: {summary['doctor']}\n"
    summary_text += f"Chuyên khoa: {summary['specialty']}\n"
    summary_text += f"Phòng khám: {summary['clinic']}\n"
    summary_text += f"Ngày khám: {summary['date']}\n"
    summary_text += f"Giờ khám: {summary['time']}\n"
    summary_text += f"Phí khám: {summary['fee']}\n"
    summary_text += f"Loại khám: {summary['type']}\n"
    if wizard.reason:
        summary_text += f"Lý do khám: {wizard.reason}\n"

    return summary_text


def get_step_text(wizard: BookingWizard) -> str:
    header = f"Bước {int(wizard.step)}/3 - {messages.STEP_LABELS[wizard.step]}"

    if wizard.step == Step.SELECT_DOCTOR:
        if not wizard.doctors:
            return f"{header}\n{messages.NO_DOCTORS}"
        return header

    if wizard.step == Step.SELECT_DATE_TIME:
        if not wizard.selected_date:
            return f"{header}\nChọn ngày khám:"
        selected_day = date.fromisoformat(wizard.selected_date).strftime("%d-%m-%Y")
        if not wizard.available_slots:
            return f"{header}\nNgày {selected_day}: {messages.NO_SLOTS}"
        return f"{header}\nKhung giờ khả dụng - {selected_day}:"

    return f"{header}\n{get_summary_text(wizard)}\nNhập lý do khám (tùy chọn) hoặc chọn loại khám:"


def prepare_step_keyboard(wizard: BookingWizard) -> InlineKeyboardMarkup:
    if wizard.step == Step.SELECT_DOCTOR:
        return prepare_doctor_keyboard(wizard)
    if wizard.step == Step.SELECT_DATE_TIME:
        return prepare_date_time_keyboard(wizard)
    return prepare_confirm_keyboard(wizard)


def get_appointment_text(appointment: AppointmentItem) -> str:
    appointment_date = datetime.fromisoformat(appointment["appointmentDate"].replace("Z", "+00:00"))

    return (
        f"Ngày: {appointment['timeSlot']} {appointment_date.strftime('%d-%m-%Y')}\n"
        f"Bác sĩ: {appointment['doctorId']['fullName']}\n"
        f"Phòng khám: {appointment['clinicId']['name']}\n"
        f"Trạng thái: {appointment['status']}"
    )
