"""FastAPI routes for auto-provisioning status checks and server control."""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from bootstrap import Container, get_container


class ConnectionTestResponse(BaseModel):
    healthy: bool


class ServerActionResponse(BaseModel):
    server: str
    action: str


class PanelStatsResponse(BaseModel):
    total_servers: int
    suspended_servers: int
    allocated_memory: int
    allocated_disk: int


# ---------------------------------------------------------------------------
# Provisioning Router
# ---------------------------------------------------------------------------
provisioning_router = APIRouter(prefix="/provisioning", tags=["provisioning"])


@provisioning_router.get("/status")
async def provisioning_status(container: Container = Depends(get_container)) -> dict:
    """Is auto-provisioning configured and is the panel reachable?"""
    return await container.orchestrator.get_auto_provisioning_status()


@provisioning_router.post("/test", response_model=ConnectionTestResponse)
async def test_connection(container: Container = Depends(get_container)) -> ConnectionTestResponse:
    return ConnectionTestResponse(healthy=await container.orchestrator.test_auto_provisioning_connection())


@provisioning_router.get("/panel-stats", response_model=PanelStatsResponse)
async def panel_stats(container: Container = Depends(get_container)) -> PanelStatsResponse:
    return PanelStatsResponse(**asdict(await container.orchestrator.get_panel_stats()))


@provisioning_router.post("/servers/{server_ref}/suspend", response_model=ServerActionResponse)
async def suspend_server(server_ref: str, container: Container = Depends(get_container)) -> ServerActionResponse:
    await container.orchestrator.suspend_server(server_ref)
    return ServerActionResponse(server=server_ref, action="suspended")


@provisioning_router.post("/servers/{server_ref}/resume", response_model=ServerActionResponse)
async def resume_server(server_ref: str, container: Container = Depends(get_container)) -> ServerActionResponse:
    await container.orchestrator.resume_server(server_ref)
    return ServerActionResponse(server=server_ref, action="resumed")


@provisioning_router.post("/servers/{server_ref}/restart", response_model=ServerActionResponse)
async def restart_server(server_ref: str, container: Container = Depends(get_container)) -> ServerActionResponse:
    await container.orchestrator.restart_server(server_ref)
    return ServerActionResponse(server=server_ref, action="restarted")
