from typing import cast

from telegram import Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from src.telegram_interface.user_data import UserDataDataclass


async def start_entrypoint(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user_data = cast(UserDataDataclass, context.user_data)
    update_message = cast(Message, update.message)

    user_data["clinic_client"] = None
    user_data["clinics"] = {}
    user_data["email"] = ""
    user_data["password"] = ""

    await update_message.reply_text("Chào mừng bạn đến với trợ lý đặt lịch khám. Dùng /login để đăng nhập.")

    return ConversationHandler.END
