"""Hosting panel port — abstract interface for the panel admin API.

All operations are async and fallible; the provisioning orchestrator
wraps every call in the retrying executor.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from catalogue.port import FeatureLimits, ResourceLimits


class PanelError(Exception):
    """A panel call was rejected. ``status_code`` is the HTTP status if known."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class AccountSpec:
    email: str
    username: str
    first_name: str
    last_name: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class PanelAccount:
    id: int
    username: str
    email: str


@dataclass(frozen=True)
class ServerSpec:
    name: str
    description: str
    account_id: int
    egg: int
    docker_image: str
    startup: str
    environment: dict
    limits: ResourceLimits
    features: FeatureLimits
    allocation_id: int


@dataclass(frozen=True)
class PanelServer:
    id: int
    identifier: str
    name: str
    uuid: str = ""


@dataclass(frozen=True)
class PanelStats:
    total_servers: int
    suspended_servers: int
    allocated_memory: int
    allocated_disk: int


class PanelPort(ABC):
    """Abstract interface for hosting panel adapters."""

    @abstractmethod
    async def create_account(self, spec: AccountSpec) -> PanelAccount: ...

    @abstractmethod
    async def create_server(self, spec: ServerSpec) -> PanelServer: ...

    @abstractmethod
    async def delete_account(self, account_id: int) -> None: ...

    @abstractmethod
    async def delete_server(self, server_id: int) -> None: ...

    @abstractmethod
    async def find_free_allocation(self, node_id: int) -> int | None:
        """Return an unassigned allocation ID on ``node_id``, or None."""
        ...

    @abstractmethod
    async def suspend(self, server_ref: str) -> None: ...

    @abstractmethod
    async def resume(self, server_ref: str) -> None: ...

    @abstractmethod
    async def restart(self, server_ref: str) -> None: ...

    @abstractmethod
    async def get_stats(self) -> PanelStats: ...

    @abstractmethod
    async def health_check(self) -> bool: ...
