import logging
from typing import cast

import httpx
from telegram import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from src.clinic_client.client import ClinicApiClient
from src.clinic_client.exceptions import ClinicApiError
from src.telegram_interface.helpers import CANCEL_PREFIX, get_appointment_text
from src.telegram_interface.user_data import UserDataDataclass

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = ("scheduled", "confirmed")


async def send_future_appointments(message: Message, client: ClinicApiClient) -> None:
    try:
        future_appointments = await client.get_upcoming_appointments()
    except (ClinicApiError, httpx.HTTPError):
        logger.exception("Could not load upcoming appointments")
        await message.reply_text("Không thể tải danh sách lịch khám.")
        return

    if not future_appointments:
        await message.reply_text("Bạn chưa có lịch khám sắp tới.")
        return

    await message.reply_text("Lịch khám sắp tới của bạn:")

    for appointment in future_appointments:
        reply_markup = None
        if appointment["status"] in CANCELLABLE_STATUSES:
            reply_markup = InlineKeyboardMarkup(
                [[InlineKeyboardButton("Hủy lịch khám", callback_data=f"{CANCEL_PREFIX}{appointment['_id']}")]]
            )
        await message.reply_text(get_appointment_text(appointment), reply_markup=reply_markup)


async def future_appointments_entrypoint(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user_data = cast(UserDataDataclass, context.user_data)
    update_message = cast(Message, update.message)

    client = user_data.get("clinic_client")
    if not client:
        await update_message.reply_text("Vui lòng đăng nhập trước (/login).")
        return ConversationHandler.END

    await send_future_appointments(update_message, client)

    return ConversationHandler.END


async def cancel_appointment(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user_data = cast(UserDataDataclass, context.user_data)
    query = cast(CallbackQuery, update.callback_query)
    query_message = cast(Message, query.message)

    await query.answer()
    data = cast(str, query.data)

    client = user_data.get("clinic_client")
    if not client:
        await query_message.reply_text("Vui lòng đăng nhập trước (/login).")
        return

    appointment_id = data.removeprefix(CANCEL_PREFIX)
    try:
        await client.cancel_appointment(appointment_id, "Cancelled by user")
    except ClinicApiError as e:
        await query_message.reply_text(f"❌ {e.message or 'Không thể hủy lịch khám.'}")
        return
    except httpx.HTTPError:
        logger.exception("Cancel request for %s failed", appointment_id)
        await query_message.reply_text("❌ Không thể hủy lịch khám.")
        return

    await query_message.edit_text(f"{query_message.text}\n\n✅ Đã hủy lịch khám")
