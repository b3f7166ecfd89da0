"""Process wiring — settings from the environment and the service container.

Everything is built once by ``build_container`` and handed down through
constructors. The HTTP app keeps the container on ``app.state``.
"""

import os
from dataclasses import dataclass, field

import structlog
from fastapi import Request

from admission.controller import AdmissionController
from catalogue.memory_adapter import InMemoryCatalogue
from notifications.channel.fake_messaging import FakeMessagingChannel
from notifications.channel.http_gateway import HttpMessagingGateway
from notifications.channel.messaging_port import MessagingChannel
from notifications.dispatcher import NotificationDispatcher
from ordering.domain import ordering
from ordering.order.lifecycle import OrderLifecycle
from provisioning.blueprints import default_blueprints
from provisioning.orchestrator import ProvisioningOrchestrator
from provisioning.panel.port import PanelPort
from provisioning.panel.pterodactyl import PterodactylPanel
from shared.resilience.executor import RetryingExecutor
from storefront.bot import StorefrontBot

logger = structlog.get_logger(__name__)


def _split(value: str | None) -> tuple[str, ...]:
    return tuple(item.strip() for item in (value or "").split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    store_name: str = "Hosting Store"
    currency: str = "IDR"
    timezone: str = "Asia/Jakarta"
    admins: tuple[str, ...] = ()

    panel_url: str | None = None
    panel_admin_api_key: str | None = field(default=None, repr=False)
    panel_client_api_key: str | None = field(default=None, repr=False)
    panel_email_domain: str = "customer.local"
    panel_node_id: int = 1

    gateway_url: str | None = None
    gateway_token: str | None = field(default=None, repr=False)

    rate_limit_max_requests: int = 8
    rate_limit_window_seconds: float = 60.0
    rate_limit_block_seconds: float = 180.0
    rate_limit_duplicate_seconds: float = 2.0
    rate_limit_cleanup_seconds: float = 300.0

    bulk_send_delay_seconds: float = 1.0

    log_dir: str | None = None

    @property
    def auto_provisioning_configured(self) -> bool:
        return bool(self.panel_url and self.panel_admin_api_key)

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            store_name=env.get("STORE_NAME", "Hosting Store"),
            currency=env.get("STORE_CURRENCY", "IDR"),
            timezone=env.get("STORE_TIMEZONE", "Asia/Jakarta"),
            admins=_split(env.get("STORE_ADMINS")),
            panel_url=env.get("PTERODACTYL_URL") or None,
            panel_admin_api_key=env.get("PTERODACTYL_ADMIN_API_KEY") or None,
            panel_client_api_key=env.get("PTERODACTYL_CLIENT_API_KEY") or None,
            panel_email_domain=env.get("PTERODACTYL_EMAIL_DOMAIN", "customer.local"),
            panel_node_id=int(env.get("PTERODACTYL_NODE_ID", "1")),
            gateway_url=env.get("MESSAGING_GATEWAY_URL") or None,
            gateway_token=env.get("MESSAGING_GATEWAY_TOKEN") or None,
            rate_limit_max_requests=int(env.get("RATE_LIMIT_MAX_REQUESTS", "8")),
            rate_limit_window_seconds=float(env.get("RATE_LIMIT_WINDOW_SECONDS", "60")),
            rate_limit_block_seconds=float(env.get("RATE_LIMIT_BLOCK_SECONDS", "180")),
            rate_limit_duplicate_seconds=float(env.get("RATE_LIMIT_DUPLICATE_SECONDS", "2")),
            rate_limit_cleanup_seconds=float(env.get("RATE_LIMIT_CLEANUP_SECONDS", "300")),
            bulk_send_delay_seconds=float(env.get("BULK_SEND_DELAY_SECONDS", "1.0")),
            log_dir=env.get("LOG_DIR") or None,
        )


@dataclass
class Container:
    settings: Settings
    catalogue: InMemoryCatalogue
    executor: RetryingExecutor
    admission: AdmissionController
    lifecycle: OrderLifecycle
    panel: PanelPort | None
    orchestrator: ProvisioningOrchestrator
    channel: MessagingChannel
    dispatcher: NotificationDispatcher
    bot: StorefrontBot


def build_container(
    settings: Settings | None = None,
    *,
    panel: PanelPort | None = None,
    channel: MessagingChannel | None = None,
    executor: RetryingExecutor | None = None,
    catalogue: InMemoryCatalogue | None = None,
) -> Container:
    """Build every service once. Keyword overrides let tests plug in fakes."""
    settings = settings or Settings.from_env()
    catalogue = catalogue or InMemoryCatalogue()
    executor = executor or RetryingExecutor()

    if panel is None and settings.auto_provisioning_configured:
        panel = PterodactylPanel(
            settings.panel_url,
            settings.panel_admin_api_key,
            client_api_key=settings.panel_client_api_key,
        )
    if channel is None:
        if settings.gateway_url:
            channel = HttpMessagingGateway(settings.gateway_url, token=settings.gateway_token)
        else:
            channel = FakeMessagingChannel()

    admission = AdmissionController(
        max_requests=settings.rate_limit_max_requests,
        window=settings.rate_limit_window_seconds,
        block_duration=settings.rate_limit_block_seconds,
        duplicate_interval=settings.rate_limit_duplicate_seconds,
        cleanup_interval=settings.rate_limit_cleanup_seconds,
    )
    lifecycle = OrderLifecycle(catalogue, currency=settings.currency, timezone=settings.timezone)
    orchestrator = ProvisioningOrchestrator(
        lifecycle,
        catalogue,
        executor,
        panel=panel,
        panel_url=settings.panel_url or "",
        email_domain=settings.panel_email_domain,
        blueprints=default_blueprints(settings.panel_node_id),
    )
    dispatcher = NotificationDispatcher(
        channel,
        executor,
        admin_addresses=settings.admins,
        currency=settings.currency,
        bulk_delay=settings.bulk_send_delay_seconds,
    )
    bot = StorefrontBot(
        ordering,
        admission,
        lifecycle,
        catalogue,
        orchestrator,
        dispatcher,
        admins=frozenset(settings.admins),
        store_name=settings.store_name,
        currency=settings.currency,
    )

    logger.info(
        "Container built",
        auto_provisioning=orchestrator.is_auto_provisioning_enabled(),
        channel=type(channel).__name__,
        admins=len(settings.admins),
    )
    return Container(
        settings=settings,
        catalogue=catalogue,
        executor=executor,
        admission=admission,
        lifecycle=lifecycle,
        panel=panel,
        orchestrator=orchestrator,
        channel=channel,
        dispatcher=dispatcher,
        bot=bot,
    )


def get_container(request: Request) -> Container:
    """FastAPI dependency returning the container built at startup."""
    return request.app.state.container
