"""Pterodactyl panel adapter over the application and client HTTP APIs."""

import httpx
import structlog

from provisioning.panel.port import (
    AccountSpec,
    PanelAccount,
    PanelError,
    PanelPort,
    PanelServer,
    PanelStats,
    ServerSpec,
)

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
ALLOCATION_PAGE_SIZE = 100


class PterodactylPanel(PanelPort):
    """Talks to ``/api/application`` with the admin key and to
    ``/api/client`` with the client key (power signals only).

    Non-2xx responses raise ``httpx.HTTPStatusError`` so the error
    classifier can read the status code.
    """

    def __init__(
        self,
        base_url: str,
        admin_api_key: str,
        client_api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._admin_api_key = admin_api_key
        self._client_api_key = client_api_key
        self._timeout = timeout
        self._transport = transport

    def _client(self, api: str, key: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/api/{api}",
            headers={
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _admin(self, method: str, path: str, json: dict | None = None, params: dict | None = None) -> dict:
        async with self._client("application", self._admin_api_key) as client:
            response = await client.request(method, path, json=json, params=params)
            response.raise_for_status()
            if response.status_code == 204 or not response.content:
                return {}
            return response.json()

    # -------------------------------------------------------------------
    # Accounts and servers
    # -------------------------------------------------------------------
    async def create_account(self, spec: AccountSpec) -> PanelAccount:
        payload = {
            "email": spec.email,
            "username": spec.username,
            "first_name": spec.first_name,
            "last_name": spec.last_name,
            "password": spec.password,
            "root_admin": False,
            "language": "en",
        }
        data = (await self._admin("POST", "/users", json=payload))["attributes"]
        logger.info("Panel account created", account_id=data["id"], username=data["username"])
        return PanelAccount(id=data["id"], username=data["username"], email=data["email"])

    async def create_server(self, spec: ServerSpec) -> PanelServer:
        payload = {
            "name": spec.name,
            "description": spec.description,
            "user": spec.account_id,
            "egg": spec.egg,
            "docker_image": spec.docker_image,
            "startup": spec.startup,
            "environment": spec.environment,
            "limits": spec.limits.as_dict(),
            "feature_limits": spec.features.as_dict(),
            "allocation": {"default": spec.allocation_id},
        }
        data = (await self._admin("POST", "/servers", json=payload))["attributes"]
        logger.info("Panel server created", server_id=data["id"], name=data["name"])
        return PanelServer(
            id=data["id"],
            identifier=data.get("identifier", ""),
            name=data["name"],
            uuid=data.get("uuid", ""),
        )

    async def delete_account(self, account_id: int) -> None:
        await self._admin("DELETE", f"/users/{account_id}")
        logger.info("Panel account deleted", account_id=account_id)

    async def delete_server(self, server_id: int) -> None:
        await self._admin("DELETE", f"/servers/{server_id}")
        logger.info("Panel server deleted", server_id=server_id)

    async def find_free_allocation(self, node_id: int) -> int | None:
        """First unassigned allocation on the node, walking every page."""
        page = 1
        while True:
            data = await self._admin(
                "GET",
                f"/nodes/{node_id}/allocations",
                params={"page": page, "per_page": ALLOCATION_PAGE_SIZE},
            )
            for item in data.get("data", []):
                attributes = item.get("attributes", {})
                if not attributes.get("assigned"):
                    return attributes["id"]
            pagination = data.get("meta", {}).get("pagination", {})
            if page >= pagination.get("total_pages", 1):
                return None
            page += 1

    # -------------------------------------------------------------------
    # Server control
    # -------------------------------------------------------------------
    async def suspend(self, server_ref: str) -> None:
        await self._admin("POST", f"/servers/{server_ref}/suspend")

    async def resume(self, server_ref: str) -> None:
        await self._admin("POST", f"/servers/{server_ref}/unsuspend")

    async def restart(self, server_ref: str) -> None:
        if not self._client_api_key:
            raise PanelError("Pterodactyl client API key not configured")
        identifier = (await self._admin("GET", f"/servers/{server_ref}"))["attributes"]["identifier"]
        async with self._client("client", self._client_api_key) as client:
            response = await client.post(f"/servers/{identifier}/power", json={"signal": "restart"})
            response.raise_for_status()

    async def get_stats(self) -> PanelStats:
        data = await self._admin("GET", "/servers")
        servers = [item.get("attributes", {}) for item in data.get("data", [])]
        return PanelStats(
            total_servers=len(servers),
            suspended_servers=sum(1 for server in servers if server.get("suspended")),
            allocated_memory=sum(server.get("limits", {}).get("memory", 0) for server in servers),
            allocated_disk=sum(server.get("limits", {}).get("disk", 0) for server in servers),
        )

    async def health_check(self) -> bool:
        try:
            await self._admin("GET", "/users?per_page=1")
        except httpx.HTTPError as exc:
            logger.warning("Panel health check failed", error=str(exc))
            return False
        return True
