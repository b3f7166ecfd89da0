"""Tests for ProvisioningOrchestrator against the fake panel."""

import asyncio

import pytest
from ordering.domain import ordering
from protean.exceptions import InvalidOperationError, InvalidStateError
from provisioning.orchestrator import ProvisioningOrchestrator
from provisioning.panel.fake_adapter import FakePanel
from provisioning.panel.port import PanelError

pytestmark = pytest.mark.anyio


class TestSuccessfulProvisioning:
    async def test_confirmed_order_is_completed(self, orchestrator, confirmed_order, panel):
        with ordering.domain_context():
            order = confirmed_order("A1")
            result = await orchestrator.provision(order.id, actor="admin")

            assert result.success is True
            assert result.order.status == "completed"
            assert result.order.server_id == result.server_id
            assert [entry.status for entry in result.order.history] == [
                "pending",
                "confirmed",
                "processing",
                "completed",
            ]

        assert len(panel.accounts) == 1
        assert len(panel.servers) == 1

    async def test_credentials(self, orchestrator, confirmed_order):
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order("A1").id)

        credentials = result.credentials
        assert credentials.panel_url == "https://panel.example.test"
        assert credentials.username == "user_34567890_000123"
        assert credentials.email == f"6281234567890+{result.order.id.lower()}@customer.local"
        assert len(credentials.password) == 16
        assert credentials.password not in repr(credentials)
        assert credentials.server_id == result.server_id

    async def test_repeat_customer_gets_distinct_panel_emails(self, orchestrator, confirmed_order, panel):
        with ordering.domain_context():
            first = await orchestrator.provision(confirmed_order("A1").id)
            second = await orchestrator.provision(confirmed_order("A2").id)

        emails = [payload.email for name, payload in panel.calls if name == "create_account"]
        assert emails == [first.credentials.email, second.credentials.email]
        assert len(set(emails)) == 2

    async def test_server_spec_uses_package_limits_and_blueprint(self, orchestrator, confirmed_order, panel, catalogue):
        with ordering.domain_context():
            order = confirmed_order("B2")
            await orchestrator.provision(order.id)

        spec = next(payload for name, payload in panel.calls if name == "create_server")
        assert spec.name == f"B2-{order.id}"
        assert spec.egg == 16
        assert spec.limits == catalogue.get_package("B2").resources
        assert spec.allocation_id == 1001

    async def test_account_named_after_customer_and_order(self, orchestrator, confirmed_order, panel):
        with ordering.domain_context():
            order = confirmed_order("C1", name=None)
            await orchestrator.provision(order.id)

        spec = next(payload for name, payload in panel.calls if name == "create_account")
        assert spec.first_name == "Customer"
        assert spec.last_name == f"#{order.id}"


class TestFailures:
    async def test_transient_failure_is_retried(self, orchestrator, confirmed_order, panel, sleeper):
        panel.fail_next("create_account")
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order().id)

        assert result.success is True
        assert panel.call_count("create_account") == 2
        assert len(sleeper.delays) == 1

    async def test_exhausted_retries_leave_order_confirmed(self, orchestrator, confirmed_order, panel, lifecycle):
        panel.fail_next("create_server", times=2)
        with ordering.domain_context():
            order = confirmed_order()
            result = await orchestrator.provision(order.id)

            assert result.success is False
            assert result.reason == "unknown"
            assert "create_server" in result.error
            reloaded = lifecycle.get_order(order.id)
            assert reloaded.status == "confirmed"
            assert reloaded.server_id is None
            assert len(reloaded.history) == 2

    async def test_orphaned_account_is_removed(self, orchestrator, confirmed_order, panel):
        panel.fail_next("create_server", times=2)
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order().id)

        assert result.compensation_error is None
        assert panel.call_count("delete_account") == 1
        assert panel.accounts == {}

    async def test_failed_compensation_is_reported(self, orchestrator, confirmed_order, panel):
        panel.fail_next("create_server", times=2)
        panel.fail_next("delete_account", times=2)
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order().id)

        assert result.success is False
        assert "delete_account" in result.compensation_error
        assert len(panel.accounts) == 1

    async def test_order_cancelled_during_server_creation(self, lifecycle, catalogue, executor, confirmed_order):
        class CancellingPanel(FakePanel):
            order_id = None

            async def create_server(self, spec):
                server = await super().create_server(spec)
                lifecycle.cancel_order(self.order_id, actor="customer", reason="Changed my mind")
                return server

        panel = CancellingPanel()
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=panel)
        with ordering.domain_context():
            order = confirmed_order()
            panel.order_id = order.id
            result = await orchestrator.provision(order.id)

            assert result.success is False
            assert result.reason == "critical"
            assert result.compensation_error is None
            reloaded = lifecycle.get_order(order.id)
            assert reloaded.status == "cancelled"
            assert reloaded.server_id is None
            assert [entry.status for entry in reloaded.history] == ["pending", "confirmed", "cancelled"]

        assert panel.servers == {}
        assert panel.accounts == {}
        assert panel.call_count("delete_server") == 1

    async def test_cancelled_order_server_left_behind_is_reported(
        self, lifecycle, catalogue, executor, confirmed_order
    ):
        class CancellingPanel(FakePanel):
            order_id = None

            async def create_server(self, spec):
                server = await super().create_server(spec)
                lifecycle.cancel_order(self.order_id, actor="admin")
                return server

        panel = CancellingPanel()
        panel.fail_next("delete_server", times=2)
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=panel)
        with ordering.domain_context():
            order = confirmed_order()
            panel.order_id = order.id
            result = await orchestrator.provision(order.id)

            assert lifecycle.get_order(order.id).server_id is None

        assert "delete_server" in result.compensation_error
        assert len(panel.servers) == 1

    async def test_auth_failure_is_not_retried(self, orchestrator, confirmed_order, panel):
        panel.fail_next("create_account", error=PanelError("Unauthorized", status_code=401), times=3)
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order().id)

        assert result.reason == "auth"
        assert panel.call_count("create_account") == 1
        assert panel.call_count("delete_account") == 0

    async def test_no_free_allocation_is_critical(self, lifecycle, catalogue, executor, confirmed_order):
        panel = FakePanel(free_allocations=[])
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=panel)
        with ordering.domain_context():
            result = await orchestrator.provision(confirmed_order().id)

        assert result.success is False
        assert result.reason == "critical"
        assert panel.call_count("create_server") == 0
        assert panel.accounts == {}

    async def test_retry_after_failure_succeeds(self, orchestrator, confirmed_order, panel):
        panel.fail_next("create_server", times=2)
        with ordering.domain_context():
            order = confirmed_order()
            assert (await orchestrator.provision(order.id)).success is False

            result = await orchestrator.retry_provisioning(order.id, actor="admin")

        assert result.success is True
        assert result.order.status == "completed"
        assert len(result.order.history) == 4


class TestPreconditions:
    async def test_pending_order_rejected(self, orchestrator, lifecycle, panel):
        with ordering.domain_context():
            order = lifecycle.create_order(customer_phone="6281234567890", package_key="A1", duration=1)
            with pytest.raises(InvalidStateError):
                await orchestrator.provision(order.id)
        assert panel.calls == []

    async def test_completed_order_rejected(self, orchestrator, confirmed_order):
        with ordering.domain_context():
            order = confirmed_order()
            await orchestrator.provision(order.id)
            with pytest.raises(InvalidStateError):
                await orchestrator.retry_provisioning(order.id)

    async def test_not_configured(self, lifecycle, catalogue, executor, confirmed_order):
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=None)
        with ordering.domain_context():
            with pytest.raises(InvalidOperationError):
                await orchestrator.provision(confirmed_order().id)

    async def test_concurrent_attempt_rejected(self, lifecycle, catalogue, executor, confirmed_order):
        class GatedPanel(FakePanel):
            def __init__(self):
                super().__init__()
                self.gate = asyncio.Event()

            async def create_account(self, spec):
                await self.gate.wait()
                return await super().create_account(spec)

        panel = GatedPanel()
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=panel)
        with ordering.domain_context():
            order = confirmed_order()
            first = asyncio.create_task(orchestrator.provision(order.id))
            await asyncio.sleep(0)

            with pytest.raises(InvalidOperationError):
                await orchestrator.provision(order.id)

            panel.gate.set()
            assert (await first).success is True

    async def test_existing_server_completes_without_recreating(self, orchestrator, confirmed_order, lifecycle, panel):
        with ordering.domain_context():
            order = confirmed_order()
            lifecycle.set_server_id(order.id, "77")

            result = await orchestrator.provision(order.id)

        assert result.success is True
        assert result.order.status == "completed"
        assert result.order.server_id == "77"
        assert result.credentials is None
        assert panel.calls == []


class TestProbesAndControl:
    async def test_status_when_configured(self, orchestrator):
        status = await orchestrator.get_auto_provisioning_status()
        assert status["enabled"] is True
        assert status["healthy"] is True
        assert status["panel_url"] == "https://panel.example.test"
        assert status["resource_mappings"]["NodeJS"]["egg"] == 15

    async def test_status_when_not_configured(self, lifecycle, catalogue, executor):
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=None)
        status = await orchestrator.get_auto_provisioning_status()
        assert status["enabled"] is False
        assert status["healthy"] is False
        assert status["panel_url"] is None
        assert orchestrator.is_auto_provisioning_enabled() is False

    async def test_connection_test_reports_unhealthy_panel(self, orchestrator, panel):
        panel.healthy = False
        assert await orchestrator.test_auto_provisioning_connection() is False

    async def test_connection_test_retries_with_connection_policy(self, orchestrator, panel):
        panel.fail_next("health_check", times=4)
        assert await orchestrator.test_auto_provisioning_connection() is True
        assert panel.call_count("health_check") == 5

    async def test_connection_test_swallows_panel_errors(self, orchestrator, panel):
        panel.fail_next("health_check", times=5)
        assert await orchestrator.test_auto_provisioning_connection() is False

    async def test_status_check_uses_lighter_policy(self, orchestrator, panel):
        panel.fail_next("health_check", times=3)
        status = await orchestrator.get_auto_provisioning_status()
        assert status["healthy"] is False
        assert panel.call_count("health_check") == 3

    async def test_server_control(self, orchestrator, panel):
        await orchestrator.suspend_server("42")
        assert panel.suspended == {"42"}
        await orchestrator.resume_server("42")
        assert panel.suspended == set()
        await orchestrator.restart_server("42")
        assert panel.restarts == ["42"]

    async def test_panel_stats(self, orchestrator, confirmed_order):
        with ordering.domain_context():
            await orchestrator.provision(confirmed_order().id)
        stats = await orchestrator.get_panel_stats()
        assert stats.total_servers == 1

    async def test_control_without_panel(self, lifecycle, catalogue, executor):
        orchestrator = ProvisioningOrchestrator(lifecycle, catalogue, executor, panel=None)
        with pytest.raises(InvalidOperationError):
            await orchestrator.suspend_server("42")
