import os
import random
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the config overlay before any domain module reads the configuration.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture
def anyio_backend():
    return "asyncio"


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------
ADMIN_PHONE = "6281100000001"
PANEL_URL = "https://panel.example.test"


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def executor(sleeper):
    from shared.resilience.executor import RetryingExecutor

    return RetryingExecutor(sleep=sleeper, rng=random.Random(7))


@pytest.fixture
def catalogue():
    from catalogue.memory_adapter import InMemoryCatalogue

    return InMemoryCatalogue()


@pytest.fixture
def lifecycle(catalogue):
    from ordering.order.lifecycle import OrderLifecycle

    return OrderLifecycle(catalogue)


@pytest.fixture
def panel():
    from provisioning.panel.fake_adapter import FakePanel

    return FakePanel()


@pytest.fixture
def channel():
    from notifications.channel.fake_messaging import FakeMessagingChannel

    return FakeMessagingChannel()


@pytest.fixture
def settings():
    from bootstrap import Settings

    return Settings(admins=(ADMIN_PHONE,), panel_url=PANEL_URL, bulk_send_delay_seconds=0.0)


@pytest.fixture
def container(settings, panel, channel, executor, catalogue):
    from bootstrap import build_container

    return build_container(settings, panel=panel, channel=channel, executor=executor, catalogue=catalogue)


@pytest.fixture
def admin_phone():
    return ADMIN_PHONE
