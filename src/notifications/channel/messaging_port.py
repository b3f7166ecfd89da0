"""Messaging channel port — abstract interface for outbound chat messages."""

from abc import ABC, abstractmethod


class ChannelError(Exception):
    """The channel refused or failed to deliver a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MessagingChannel(ABC):
    """Abstract interface for chat message adapters."""

    @abstractmethod
    async def send_text(self, address: str, text: str) -> None:
        """Deliver ``text`` to ``address``. Raises ChannelError (or a
        transport error) on failure.
        """
        ...
