import logging
from typing import cast

import httpx
from telegram import Message, Update
from telegram.ext import ContextTypes, ConversationHandler

from src.clinic_client.client import ClinicApiClient
from src.clinic_client.exceptions import AuthenticationError
from src.telegram_interface.states import PROVIDE_EMAIL, PROVIDE_PASSWORD
from src.telegram_interface.user_data import UserDataDataclass

logger = logging.getLogger(__name__)


async def login(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    update_message = cast(Message, update.message)

    await update_message.reply_text("Đăng nhập tài khoản.\n\nVui lòng nhập email:")
    return PROVIDE_EMAIL


async def email(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user_data = cast(UserDataDataclass, context.user_data)
    update_message = cast(Message, update.message)

    user_data["email"] = cast(str, update_message.text).strip()
    await update_message.reply_text("Vui lòng nhập mật khẩu:")
    return PROVIDE_PASSWORD


async def password(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    user_data = cast(UserDataDataclass, context.user_data)
    update_message = cast(Message, update.message)

    user_data["password"] = cast(str, update_message.text)

    clinic_client = ClinicApiClient(user_data["email"], user_data["password"])
    try:
        await clinic_client.log_in()
    except (AuthenticationError, httpx.HTTPError):
        logger.warning("Login failed for %s", user_data["email"])
        await update_message.reply_text("Đăng nhập thất bại. Vui lòng thử lại.")
        return await login(update, context)

    user_data["clinic_client"] = clinic_client
    user_data["email"] = ""
    user_data["password"] = ""
    await update_message.reply_text("Đăng nhập thành công. Dùng /book để đặt lịch khám.")
    return ConversationHandler.END
