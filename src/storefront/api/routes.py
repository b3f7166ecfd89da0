"""Inbound chat webhook — the chat gateway posts every received message here."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bootstrap import Container, get_container


class InboundMessageRequest(BaseModel):
    sender: str
    text: str
    chat_address: str | None = None
    display_name: str | None = None


class ReplyResponse(BaseModel):
    reply: str | None = None


storefront_router = APIRouter(prefix="/storefront", tags=["storefront"])


@storefront_router.post("/messages", response_model=ReplyResponse)
async def inbound_message(body: InboundMessageRequest, container: Container = Depends(get_container)) -> ReplyResponse:
    """Run one chat message through the bot. A null reply means stay silent."""
    reply = await container.bot.handle_message(
        body.sender,
        body.text,
        chat_address=body.chat_address,
        display_name=body.display_name,
    )
    return ReplyResponse(reply=reply)
