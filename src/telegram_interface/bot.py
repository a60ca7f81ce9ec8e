import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable

from dotenv import load_dotenv
from telegram import BotCommand
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ConversationHandler,
    MessageHandler,
    PicklePersistence,
    filters,
)

from src.telegram_interface.commands.book import (
    book_entrypoint,
    end_book_command,
    read_clinic,
    read_confirm_step,
    read_date_time_step,
    read_doctor_step,
    read_reason,
)
from src.telegram_interface.commands.future_appointments import cancel_appointment, future_appointments_entrypoint
from src.telegram_interface.commands.login import email, login, password
from src.telegram_interface.commands.start import start_entrypoint
from src.telegram_interface.helpers import BOOK_CALLBACK_PATTERN, CANCEL_PREFIX
from src.telegram_interface.states import (
    CONFIRM_BOOKING,
    PROVIDE_EMAIL,
    PROVIDE_PASSWORD,
    SELECT_CLINIC,
    SELECT_DATE_TIME,
    SELECT_DOCTOR,
)

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()


async def post_init(application: Application[Any, Any, Any, Any, Any, Any]) -> None:
    await application.bot.set_my_commands(
        [
            BotCommand("/start", "Start the bot"),
            BotCommand("/login", "Log in to the clinic booking service"),
            BotCommand("/book", "Book a new appointment"),
            BotCommand("/future_appointments", "Show and cancel your upcoming appointments"),
        ]
    )


async def end_current_command(*args: Any, **kwargs: Any) -> int:
    return ConversationHandler.END


def fallback_commands(
    *excluded: str, callback: Callable[..., Awaitable[int]] = end_current_command
) -> list[CommandHandler[Any, Any]]:
    commands = ("start", "login", "book", "future_appointments")
    return [CommandHandler(command, callback) for command in commands if command not in excluded]


class TelegramBot:
    def __init__(self) -> None:
        source_folder = Path(__file__).resolve().parent.parent.parent
        pickle_file_path = Path(os.environ["TELEGRAM_PERSISTENCE_PICKLE_FILE_PATH"])
        file_path = source_folder / pickle_file_path

        persistence = PicklePersistence(filepath=file_path)

        self.bot = (
            ApplicationBuilder()
            .token(os.environ["TELEGRAM_BOT_TOKEN"])
            .post_init(post_init)
            .persistence(persistence)
            .build()
        )

        start_handler = ConversationHandler(
            entry_points=[CommandHandler("start", start_entrypoint)],
            states={},
            fallbacks=[],
        )

        login_handler = ConversationHandler(
            entry_points=[CommandHandler("login", login)],
            states={
                PROVIDE_EMAIL: [MessageHandler(filters.TEXT & ~filters.COMMAND, email)],
                PROVIDE_PASSWORD: [MessageHandler(filters.TEXT & ~filters.COMMAND, password)],
            },
            fallbacks=fallback_commands("login"),
            allow_reentry=True,
        )

        book_handler = ConversationHandler(
            entry_points=[CommandHandler("book", book_entrypoint)],
            states={
                SELECT_CLINIC: [
                    CallbackQueryHandler(read_clinic, pattern=BOOK_CALLBACK_PATTERN),
                ],
                SELECT_DOCTOR: [
                    CallbackQueryHandler(read_doctor_step, pattern=BOOK_CALLBACK_PATTERN),
                ],
                SELECT_DATE_TIME: [
                    CallbackQueryHandler(read_date_time_step, pattern=BOOK_CALLBACK_PATTERN),
                ],
                CONFIRM_BOOKING: [
                    CallbackQueryHandler(read_confirm_step, pattern=BOOK_CALLBACK_PATTERN),
                    MessageHandler(filters.TEXT & ~filters.COMMAND, read_reason),
                ],
            },
            fallbacks=fallback_commands("book", callback=end_book_command),
            allow_reentry=True,
        )

        future_appointments_handler = ConversationHandler(
            entry_points=[CommandHandler("future_appointments", future_appointments_entrypoint)],
            states={},
            fallbacks=fallback_commands("future_appointments"),
            allow_reentry=True,
        )

        self.bot.add_handler(start_handler, 0)
        self.bot.add_handler(login_handler, 1)
        self.bot.add_handler(book_handler, 2)
        self.bot.add_handler(future_appointments_handler, 3)
        self.bot.add_handler(CallbackQueryHandler(cancel_appointment, pattern=f"^{CANCEL_PREFIX}"), 4)

        self.bot.run_polling()


if __name__ == "__main__":
    TelegramBot()
