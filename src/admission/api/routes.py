"""FastAPI routes for admission-controller support tooling."""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bootstrap import Container, get_container


class SenderStatusResponse(BaseModel):
    sender: str
    is_blocked: bool
    remaining_requests: int
    block_time_remaining: float
    window_reset_in: float


class AdmissionStatsResponse(BaseModel):
    total_senders: int
    blocked_senders: int
    active_senders: int


class UnblockResponse(BaseModel):
    sender: str
    unblocked: bool


# ---------------------------------------------------------------------------
# Admission Router
# ---------------------------------------------------------------------------
admission_router = APIRouter(prefix="/admission", tags=["admission"])


@admission_router.get("/stats", response_model=AdmissionStatsResponse)
async def admission_stats(container: Container = Depends(get_container)) -> AdmissionStatsResponse:
    return AdmissionStatsResponse(**asdict(container.admission.stats()))


@admission_router.get("/senders/{sender}", response_model=SenderStatusResponse)
async def sender_status(sender: str, container: Container = Depends(get_container)) -> SenderStatusResponse:
    return SenderStatusResponse(sender=sender, **asdict(container.admission.status(sender)))


@admission_router.post("/senders/{sender}/unblock", response_model=UnblockResponse)
async def unblock_sender(sender: str, container: Container = Depends(get_container)) -> UnblockResponse:
    return UnblockResponse(sender=sender, unblocked=container.admission.unblock(sender))


@admission_router.post("/senders/{sender}/reset", status_code=204)
async def reset_sender(sender: str, container: Container = Depends(get_container)) -> None:
    container.admission.reset(sender)
