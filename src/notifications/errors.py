"""Notification delivery failures. Non-fatal: logged and counted only."""

from shared.resilience.errors import ExternalCallError


class NotificationDeliveryError(Exception):
    def __init__(self, recipient: str, message_kind: str, cause: ExternalCallError):
        self.recipient = recipient
        self.message_kind = message_kind
        self.cause = cause
        super().__init__(f"Could not deliver {message_kind} to {recipient}: {cause}")
