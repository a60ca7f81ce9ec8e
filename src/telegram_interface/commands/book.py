import logging
from typing import cast

import httpx
import telegram
from telegram import CallbackQuery, Chat, Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from src.booking import messages
from src.booking.exceptions import StepGuardError
from src.booking.wizard import BookingWizard, Step
from src.clinic_client.exceptions import ClinicApiError
from src.telegram_interface.commands.future_appointments import send_future_appointments
from src.telegram_interface.helpers import (
    BACK,
    CLINIC_PREFIX,
    DATE_PREFIX,
    DOCTOR_PREFIX,
    NEXT,
    NEXT_MONTH,
    PREVIOUS_MONTH,
    SLOT_PREFIX,
    SUBMIT,
    TYPE_PREFIX,
    get_step_text,
    prepare_clinic_keyboard,
    prepare_step_keyboard,
)
from src.telegram_interface.notifier import TelegramNavigator, TelegramNotifier
from src.telegram_interface.states import CONFIRM_BOOKING, SELECT_CLINIC, SELECT_DATE_TIME, SELECT_DOCTOR
from src.telegram_interface.user_data import UserDataDataclass

logger = logging.getLogger(__name__)

# Booking sessions are kept in memory only, keyed by chat id.
active_wizards: dict[int, BookingWizard] = {}

STEP_STATES = {
    Step.SELECT_DOCTOR: SELECT_DOCTOR,
    Step.SELECT_DATE_TIME: SELECT_DATE_TIME,
    Step.CONFIRM: CONFIRM_BOOKING,
}


def get_wizard(update: Update) -> BookingWizard | None:
    chat = cast(Chat, update.effective_chat)
    return active_wizards.get(chat.id)


async def book_entrypoint(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    message = update.message
    if message is None:
        callback_query = cast(CallbackQuery, update.callback_query)
        message = cast(Message, callback_query.message)

    user_data = cast(UserDataDataclass, context.user_data)

    client = user_data.get("clinic_client")
    if not client:
        await message.reply_text("Vui lòng đăng nhập trước (/login).")
        return ConversationHandler.END

    try:
        clinics = await client.get_clinics(limit=100)
    except (ClinicApiError, httpx.HTTPError):
        logger.exception("Could not load clinics")
        await message.reply_text("Không thể tải danh sách phòng khám.")
        return ConversationHandler.END

    if not clinics:
        await message.reply_text("Không có phòng khám nào.")
        return ConversationHandler.END

    user_data["clinics"] = {clinic["_id"]: clinic["name"] for clinic in clinics}

    await message.reply_text("Chọn phòng khám:", reply_markup=prepare_clinic_keyboard(clinics))

    return SELECT_CLINIC


async def read_clinic(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user_data = cast(UserDataDataclass, context.user_data)
    query = cast(CallbackQuery, update.callback_query)
    query_message = cast(Message, query.message)
    chat = cast(Chat, update.effective_chat)

    await query.answer()

    client = user_data.get("clinic_client")
    if not client:
        await query_message.reply_text("Vui lòng đăng nhập trước (/login).")
        return ConversationHandler.END

    data = cast(str, query.data)
    if not data.startswith(CLINIC_PREFIX):
        return SELECT_CLINIC

    clinic_id = data.removeprefix(CLINIC_PREFIX)
    wizard = BookingWizard(client, clinic_id, TelegramNotifier(context.bot, chat.id), TelegramNavigator())
    if not await wizard.load():
        return await book_entrypoint(update, context)

    active_wizards[chat.id] = wizard

    clinic_name = user_data.get("clinics", {}).get(clinic_id, clinic_id)
    await query.edit_message_text(f"✅ Đã chọn phòng khám: {clinic_name}")
    await query_message.reply_text(get_step_text(wizard), reply_markup=prepare_step_keyboard(wizard))

    return SELECT_DOCTOR


async def show_wizard(update: Update, context: ContextTypes.DEFAULT_TYPE, wizard: BookingWizard) -> int:
    if wizard.finished:
        return await leave_wizard(update, context, wizard)

    query = cast(CallbackQuery, update.callback_query)
    try:
        await query.edit_message_text(get_step_text(wizard), reply_markup=prepare_step_keyboard(wizard))
    except telegram.error.BadRequest:
        pass

    return STEP_STATES[wizard.step]


async def leave_wizard(update: Update, context: ContextTypes.DEFAULT_TYPE, wizard: BookingWizard) -> int:
    chat = cast(Chat, update.effective_chat)
    active_wizards.pop(chat.id, None)

    navigator = cast(TelegramNavigator, wizard.navigator)
    if navigator.path == messages.CLINICS_ROUTE:
        return await book_entrypoint(update, context)

    query = cast(CallbackQuery, update.callback_query)
    query_message = cast(Message, query.message)
    await query.edit_message_reply_markup(reply_markup=None)
    await send_future_appointments(query_message, wizard.client)

    return ConversationHandler.END


async def end_book_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    chat = cast(Chat, update.effective_chat)
    active_wizards.pop(chat.id, None)
    return ConversationHandler.END


async def expired_session(update: Update) -> int:
    query = cast(CallbackQuery, update.callback_query)
    query_message = cast(Message, query.message)
    await query_message.reply_text("Phiên đặt lịch đã hết hạn. Dùng /book để bắt đầu lại.")
    return ConversationHandler.END


async def read_doctor_step(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = cast(CallbackQuery, update.callback_query)
    await query.answer()

    wizard = get_wizard(update)
    if wizard is None:
        return await expired_session(update)

    data = cast(str, query.data)

    if data == BACK:
        await wizard.back()
    elif data == NEXT:
        try:
            wizard.next_step()
        except StepGuardError:
            logger.debug("Continue pressed without a doctor")
    elif data.startswith(DOCTOR_PREFIX):
        doctor = wizard.find_doctor(data.removeprefix(DOCTOR_PREFIX))
        if doctor is not None:
            await wizard.select_doctor(doctor)

    return await show_wizard(update, context, wizard)


async def read_date_time_step(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = cast(CallbackQuery, update.callback_query)
    await query.answer()

    wizard = get_wizard(update)
    if wizard is None:
        return await expired_session(update)

    data = cast(str, query.data)

    if data == BACK:
        await wizard.back()
    elif data == NEXT:
        try:
            wizard.next_step()
        except StepGuardError:
            logger.debug("Continue pressed without a date and slot")
    elif data == PREVIOUS_MONTH:
        wizard.prev_month()
    elif data == NEXT_MONTH:
        wizard.next_month()
    elif data.startswith(DATE_PREFIX):
        try:
            await wizard.select_date(data.removeprefix(DATE_PREFIX))
        except ValueError:
            logger.debug("Ignoring unselectable day %s", data)
    elif data.startswith(SLOT_PREFIX):
        try:
            wizard.select_slot(data.removeprefix(SLOT_PREFIX))
        except ValueError:
            logger.debug("Ignoring stale slot %s", data)

    return await show_wizard(update, context, wizard)


async def read_confirm_step(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = cast(CallbackQuery, update.callback_query)
    await query.answer()

    wizard = get_wizard(update)
    if wizard is None:
        return await expired_session(update)

    data = cast(str, query.data)

    if data == BACK:
        await wizard.back()
    elif data == SUBMIT:
        await wizard.submit()
    elif data.startswith(TYPE_PREFIX):
        wizard.set_appointment_type(data.removeprefix(TYPE_PREFIX))

    return await show_wizard(update, context, wizard)


async def read_reason(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    update_message = cast(Message, update.message)

    wizard = get_wizard(update)
    if wizard is None:
        await update_message.reply_text("Phiên đặt lịch đã hết hạn. Dùng /book để bắt đầu lại.")
        return ConversationHandler.END

    wizard.set_reason(cast(str, update_message.text))
    await update_message.reply_text(get_step_text(wizard), reply_markup=prepare_step_keyboard(wizard))

    return CONFIRM_BOOKING
