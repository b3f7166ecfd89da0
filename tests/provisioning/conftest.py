import pytest
from provisioning.orchestrator import ProvisioningOrchestrator

CUSTOMER = "6281234567890"
PANEL_URL = "https://panel.example.test"


@pytest.fixture
def orchestrator(lifecycle, catalogue, executor, panel):
    return ProvisioningOrchestrator(
        lifecycle,
        catalogue,
        executor,
        panel=panel,
        panel_url=PANEL_URL,
        clock=lambda: 1700000123.0,
    )


@pytest.fixture
def confirmed_order(lifecycle):
    """Factory creating a confirmed order. Call it inside a domain context."""

    def _make(package_key="A1", duration=1, phone=CUSTOMER, name="Budi"):
        order = lifecycle.create_order(
            customer_phone=phone, package_key=package_key, duration=duration, customer_name=name
        )
        return lifecycle.confirm(order.id, actor="admin")

    return _make
