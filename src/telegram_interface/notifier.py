from telegram import Bot


class TelegramNotifier:
    def __init__(self, bot: Bot, chat_id: int) -> None:
        self.bot = bot
        self.chat_id = chat_id

    async def _send(self, icon: str, message: str, title: str | None) -> None:
        text = f"{icon} {title}\n{message}" if title else f"{icon} {message}"
        await self.bot.send_message(chat_id=self.chat_id, text=text)

    async def success(self, message: str, title: str | None = None) -> None:
        await self._send("✅", message, title)

    async def error(self, message: str, title: str | None = None) -> None:
        await self._send("❌", message, title)

    async def warning(self, message: str, title: str | None = None) -> None:
        await self._send("⚠️", message, title)

    async def info(self, message: str, title: str | None = None) -> None:
        await self._send("ℹ️", message, title)


class TelegramNavigator:
    def __init__(self) -> None:
        self.path: str | None = None

    async def navigate(self, path: str) -> None:
        self.path = path
