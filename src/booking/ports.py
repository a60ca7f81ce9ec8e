from typing import Protocol


class Notifier(Protocol):
    async def success(self, message: str, title: str | None = None) -> None: ...

    async def error(self, message: str, title: str | None = None) -> None: ...

    async def warning(self, message: str, title: str | None = None) -> None: ...

    async def info(self, message: str, title: str | None = None) -> None: ...


class Navigator(Protocol):
    async def navigate(self, path: str) -> None: ...
