"""Provisioning orchestrator — turns a confirmed order into a panel server.

Flow for one attempt:

1. The order must be ``confirmed`` and auto-provisioning must be configured.
2. Resolve the catalogue package and the server blueprint for its family.
3. Create the panel account, pick a free allocation, create the server.
   Each call runs through the retrying executor with the provisioning policy.
4. Record the server ID on the order (still ``confirmed``), then complete
   the order in one write.

A failed attempt leaves the order ``confirmed`` and returns a failed
``ProvisioningResult``. If the account was created but the server was not,
the account is deleted again before returning. If the order stopped being
``confirmed`` while the panel calls ran, the new server and account are
both deleted and the attempt fails as critical.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from protean.exceptions import InvalidOperationError, InvalidStateError

from catalogue.port import CataloguePort, HostingPackage
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import SYSTEM_ACTOR, Order, OrderStatus
from provisioning.blueprints import ServerBlueprint, default_blueprints
from provisioning.credentials import (
    ProvisioningCredentials,
    generate_password,
    panel_email,
    panel_username,
)
from provisioning.panel.port import AccountSpec, PanelAccount, PanelPort, PanelServer, PanelStats, ServerSpec
from shared.resilience.errors import ErrorKind, ExternalCallError
from shared.resilience.executor import API_CALL, CONNECTION, PROVISIONING, RetryingExecutor, RetryPolicy

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProvisioningResult:
    success: bool
    order: Order | None = None
    credentials: ProvisioningCredentials | None = None
    server_id: str | None = None
    error: str | None = None
    reason: str | None = None
    compensation_error: str | None = None

    @classmethod
    def failed(cls, order: Order, error: str, reason: ErrorKind, compensation_error: str | None = None):
        return cls(
            success=False,
            order=order,
            error=error,
            reason=reason.value,
            compensation_error=compensation_error,
        )


class ProvisioningOrchestrator:
    def __init__(
        self,
        lifecycle: OrderLifecycle,
        catalogue: CataloguePort,
        executor: RetryingExecutor,
        panel: PanelPort | None = None,
        panel_url: str = "",
        email_domain: str = "customer.local",
        blueprints: dict | None = None,
        policy: RetryPolicy = PROVISIONING,
        clock: Callable[[], float] = time.time,
    ):
        self.lifecycle = lifecycle
        self.catalogue = catalogue
        self.executor = executor
        self.panel = panel
        self.panel_url = panel_url
        self.email_domain = email_domain
        self.blueprints = blueprints if blueprints is not None else default_blueprints()
        self.policy = policy
        self._clock = clock
        self._in_flight: set[str] = set()

    # -------------------------------------------------------------------
    # Capability checks (never touch orders)
    # -------------------------------------------------------------------
    def is_auto_provisioning_enabled(self) -> bool:
        return self.panel is not None

    async def test_auto_provisioning_connection(self, policy: RetryPolicy = CONNECTION) -> bool:
        if self.panel is None:
            logger.warning("Auto-provisioning not configured")
            return False
        try:
            healthy = await self.executor.run(self.panel.health_check, name="panel.health_check", policy=policy)
        except ExternalCallError as exc:
            logger.error("Auto-provisioning connection test failed", reason=exc.reason.value)
            return False
        return bool(healthy)

    async def get_auto_provisioning_status(self) -> dict:
        configured = self.is_auto_provisioning_enabled()
        healthy = await self.test_auto_provisioning_connection(policy=API_CALL) if configured else False
        return {
            "enabled": configured,
            "configured": configured,
            "healthy": healthy,
            "panel_url": self.panel_url if configured else None,
            "resource_mappings": {
                family.value: {"egg": blueprint.egg, "docker_image": blueprint.docker_image, "node": blueprint.node_id}
                for family, blueprint in self.blueprints.items()
            },
        }

    # -------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------
    async def provision(self, order_id: str, actor: str = SYSTEM_ACTOR) -> ProvisioningResult:
        """Run one provisioning attempt for a confirmed order.

        Raises InvalidStateError when the order is not ``confirmed`` and
        InvalidOperationError when provisioning is unavailable or an attempt
        for the same order is already running. Panel failures are returned
        as a failed ``ProvisioningResult``.
        """
        order = self.lifecycle.get_order(order_id)
        if order.status != OrderStatus.CONFIRMED.value:
            raise InvalidStateError(f"Order {order.id} must be confirmed before provisioning (is {order.status})")
        if self.panel is None:
            raise InvalidOperationError("Auto-provisioning is not configured")
        if order.id in self._in_flight:
            raise InvalidOperationError(f"Provisioning for order {order.id} is already in progress")

        self._in_flight.add(order.id)
        try:
            return await self._provision(order, actor)
        finally:
            self._in_flight.discard(order.id)

    async def retry_provisioning(self, order_id: str, actor: str = SYSTEM_ACTOR) -> ProvisioningResult:
        """A brand-new attempt. Safe to call repeatedly while the order is confirmed."""
        logger.info("Retrying provisioning", order_id=order_id, actor=actor)
        return await self.provision(order_id, actor)

    async def _provision(self, order: Order, actor: str) -> ProvisioningResult:
        log = logger.bind(order_id=order.id)

        if order.server_id:
            # An earlier attempt created the server but did not complete the order
            log.info("Order already has a server, completing without re-creating", server_id=order.server_id)
            completed = self.lifecycle.mark_provisioned(order.id, order.server_id, order.panel_username, actor)
            return ProvisioningResult(success=True, order=completed, server_id=order.server_id)

        package = self.catalogue.get_package(order.package.key)
        blueprint = self.blueprints.get(package.family) if package is not None else None
        if package is None or blueprint is None:
            log.error("No resource mapping for package", package=order.package.key)
            return ProvisioningResult.failed(
                order, f"No resource mapping for package {order.package.key}", ErrorKind.CRITICAL
            )

        password = generate_password()
        spec = AccountSpec(
            email=panel_email(order.customer.phone, order.id, self.email_domain),
            username=panel_username(order.customer.phone, self._clock()),
            first_name=order.customer.display_name or "Customer",
            last_name=f"#{order.id}",
            password=password,
        )

        log.info("Provisioning started", package=package.key, username=spec.username)
        try:
            account = await self.executor.run(
                lambda: self.panel.create_account(spec), name="panel.create_account", policy=self.policy
            )
        except ExternalCallError as exc:
            return ProvisioningResult.failed(order, str(exc), exc.reason)

        try:
            allocation_id = await self.executor.run(
                lambda: self.panel.find_free_allocation(blueprint.node_id),
                name="panel.find_free_allocation",
                policy=self.policy,
            )
            if allocation_id is None:
                raise ExternalCallError(
                    "panel.find_free_allocation",
                    ErrorKind.CRITICAL,
                    1,
                    RuntimeError(f"No free allocation on node {blueprint.node_id}"),
                )
            server_spec = self._server_spec(order, package, blueprint, account, allocation_id)
            server = await self.executor.run(
                lambda: self.panel.create_server(server_spec),
                name="panel.create_server",
                policy=self.policy,
            )
        except ExternalCallError as exc:
            compensation_error = await self._compensate(account)
            return ProvisioningResult.failed(order, str(exc), exc.reason, compensation_error)

        current = self.lifecycle.get_order(order.id)
        if current.status != OrderStatus.CONFIRMED.value:
            # Changed by someone else while the panel calls were running
            log.error("Order left confirmed during provisioning", status=current.status, server_id=server.id)
            compensation_error = await self._compensate(account, server)
            return ProvisioningResult.failed(
                current,
                f"Order {current.id} became {current.status} while provisioning",
                ErrorKind.CRITICAL,
                compensation_error,
            )

        server_ref = str(server.id)
        self.lifecycle.set_server_id(order.id, server_ref, actor=actor)
        completed = self.lifecycle.mark_provisioned(order.id, server_ref, account.username, actor)

        credentials = ProvisioningCredentials(
            panel_url=self.panel_url,
            username=account.username,
            email=account.email,
            password=password,
            server_id=server_ref,
            server_name=server.name,
        )
        log.info("Provisioning completed", server_id=server_ref)
        log.debug("Provisioned credentials", credentials=credentials)
        return ProvisioningResult(success=True, order=completed, credentials=credentials, server_id=server_ref)

    @staticmethod
    def _server_spec(
        order: Order, package: HostingPackage, blueprint: ServerBlueprint, account: PanelAccount, allocation_id: int
    ) -> ServerSpec:
        return ServerSpec(
            name=f"{order.package.key.upper()}-{order.id}",
            description=f"Auto-provisioned server for order {order.id}",
            account_id=account.id,
            egg=blueprint.egg,
            docker_image=blueprint.docker_image,
            startup=blueprint.startup,
            environment=dict(blueprint.environment),
            limits=package.resources,
            features=package.features,
            allocation_id=allocation_id,
        )

    async def _compensate(self, account: PanelAccount, server: PanelServer | None = None) -> str | None:
        """Delete what a failed attempt created. Returns the error text if that fails too."""
        try:
            if server is not None:
                await self.executor.run(
                    lambda: self.panel.delete_server(server.id), name="panel.delete_server", policy=self.policy
                )
                logger.info("Removed panel server from failed attempt", server_id=server.id)
            await self.executor.run(
                lambda: self.panel.delete_account(account.id), name="panel.delete_account", policy=self.policy
            )
        except ExternalCallError as exc:
            logger.error(
                "Orphaned panel resources left behind",
                account_id=account.id,
                server_id=server.id if server is not None else None,
                error=str(exc),
            )
            return str(exc)
        logger.info("Removed panel account from failed attempt", account_id=account.id)
        return None

    # -------------------------------------------------------------------
    # Server control pass-throughs
    # -------------------------------------------------------------------
    def _require_panel(self) -> PanelPort:
        if self.panel is None:
            raise InvalidOperationError("Auto-provisioning is not configured")
        return self.panel

    async def suspend_server(self, server_ref: str) -> None:
        panel = self._require_panel()
        await self.executor.run(lambda: panel.suspend(server_ref), name="panel.suspend", policy=API_CALL)

    async def resume_server(self, server_ref: str) -> None:
        panel = self._require_panel()
        await self.executor.run(lambda: panel.resume(server_ref), name="panel.resume", policy=API_CALL)

    async def restart_server(self, server_ref: str) -> None:
        panel = self._require_panel()
        await self.executor.run(lambda: panel.restart(server_ref), name="panel.restart", policy=API_CALL)

    async def get_panel_stats(self) -> PanelStats:
        panel = self._require_panel()
        return await self.executor.run(panel.get_stats, name="panel.get_stats", policy=API_CALL)
