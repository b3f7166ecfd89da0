"""HTTP messaging gateway adapter.

Posts ``{"to": ..., "text": ...}`` to a chat gateway that owns the actual
chat protocol session.
"""

import httpx

from notifications.channel.messaging_port import ChannelError, MessagingChannel

DEFAULT_TIMEOUT = 15.0


class HttpMessagingGateway(MessagingChannel):
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def send_text(self, address: str, text: str) -> None:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        async with httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post("/messages", json={"to": address, "text": text})

        if response.status_code >= 400:
            raise ChannelError(
                f"Gateway rejected message: {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )
