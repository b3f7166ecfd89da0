"""Fake messaging adapter — records sent messages for testing."""

from uuid import uuid4

from notifications.channel.messaging_port import ChannelError, MessagingChannel


class FakeMessagingChannel(MessagingChannel):
    """Messaging adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.attempts: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Message delivery failed"
        self.failure_status: int | None = None
        self.failing_addresses: set[str] = set()
        self._failures_left = 0

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Message delivery failed",
        failure_status: int | None = None,
        fail_times: int = 0,
        failing_addresses: set[str] | None = None,
    ):
        """Configure the fake adapter behavior for testing.

        ``fail_times`` makes the next N sends fail and later ones succeed;
        ``failing_addresses`` makes every send to those addresses fail.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failure_status = failure_status
        self._failures_left = fail_times
        self.failing_addresses = set(failing_addresses or ())

    async def send_text(self, address: str, text: str) -> None:
        self.attempts.append({"to": address, "text": text})

        if not self.should_succeed or address in self.failing_addresses or self._failures_left > 0:
            if self._failures_left > 0:
                self._failures_left -= 1
            raise ChannelError(self.failure_reason, status_code=self.failure_status)

        self.sent_messages.append({"message_id": f"msg-{uuid4().hex[:12]}", "to": address, "text": text})

    def messages_to(self, address: str) -> list[str]:
        return [message["text"] for message in self.sent_messages if message["to"] == address]

    def reset(self):
        """Clear recorded messages and failure settings (useful between tests)."""
        self.sent_messages.clear()
        self.attempts.clear()
        self.configure()
