"""Ordering bounded context — hosting plan orders and their lifecycle.

Owns the Order aggregate (CQRS, not event sourced) with its append-only
status history ledger, the commands that mutate it, and the
OrderLifecycle service that the chat and HTTP layers call into.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
