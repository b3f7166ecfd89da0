"""Fake panel adapter — in-memory accounts and servers for testing."""

from provisioning.panel.port import (
    AccountSpec,
    PanelAccount,
    PanelError,
    PanelPort,
    PanelServer,
    PanelStats,
    ServerSpec,
)


class FakePanel(PanelPort):
    """Panel adapter that keeps state in memory and records every call.

    Failures are queued per operation name with ``fail_next`` and consumed
    one per call, so "fail once, then succeed" scenarios are easy to set up.
    """

    def __init__(self, free_allocations: list[int] | None = None):
        self.accounts: dict[int, PanelAccount] = {}
        self.servers: dict[int, PanelServer] = {}
        self.suspended: set[str] = set()
        self.restarts: list[str] = []
        self.calls: list[tuple[str, object]] = []
        self.healthy = True
        self.free_allocations = list(free_allocations) if free_allocations is not None else [1001, 1002, 1003]
        self._failures: dict[str, list[Exception]] = {}
        self._next_id = 1

    def fail_next(self, operation: str, error: Exception | None = None, times: int = 1):
        """Queue ``times`` failures for ``operation`` (e.g. "create_server")."""
        error = error or PanelError(f"{operation} failed", status_code=500)
        self._failures.setdefault(operation, []).extend([error] * times)

    def _record(self, operation: str, payload: object = None):
        self.calls.append((operation, payload))
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _allocate_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    async def create_account(self, spec: AccountSpec) -> PanelAccount:
        self._record("create_account", spec)
        account = PanelAccount(id=self._allocate_id(), username=spec.username, email=spec.email)
        self.accounts[account.id] = account
        return account

    async def create_server(self, spec: ServerSpec) -> PanelServer:
        self._record("create_server", spec)
        if spec.allocation_id in self.free_allocations:
            self.free_allocations.remove(spec.allocation_id)
        server_id = self._allocate_id()
        server = PanelServer(id=server_id, identifier=f"srv{server_id:05d}", name=spec.name, uuid=f"uuid-{server_id}")
        self.servers[server.id] = server
        return server

    async def delete_account(self, account_id: int) -> None:
        self._record("delete_account", account_id)
        self.accounts.pop(account_id, None)

    async def delete_server(self, server_id: int) -> None:
        self._record("delete_server", server_id)
        self.servers.pop(server_id, None)

    async def find_free_allocation(self, node_id: int) -> int | None:
        self._record("find_free_allocation", node_id)
        return self.free_allocations[0] if self.free_allocations else None

    async def suspend(self, server_ref: str) -> None:
        self._record("suspend", server_ref)
        self.suspended.add(server_ref)

    async def resume(self, server_ref: str) -> None:
        self._record("resume", server_ref)
        self.suspended.discard(server_ref)

    async def restart(self, server_ref: str) -> None:
        self._record("restart", server_ref)
        self.restarts.append(server_ref)

    async def get_stats(self) -> PanelStats:
        self._record("get_stats")
        return PanelStats(
            total_servers=len(self.servers),
            suspended_servers=len(self.suspended),
            allocated_memory=0,
            allocated_disk=0,
        )

    async def health_check(self) -> bool:
        self._record("health_check")
        return self.healthy
