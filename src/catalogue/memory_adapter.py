"""In-memory catalogue adapter seeded with the default hosting packages."""

from dataclasses import replace

import structlog

from catalogue.packages import default_packages
from catalogue.port import CataloguePort, HostingPackage

logger = structlog.get_logger(__name__)


class InMemoryCatalogue(CataloguePort):
    """Catalogue held in a dict keyed by upper-case package key."""

    def __init__(self, packages: list[HostingPackage] | None = None):
        source = default_packages() if packages is None else packages
        self._packages: dict[str, HostingPackage] = {pkg.key.upper(): pkg for pkg in source}

    def get_package(self, key: str) -> HostingPackage | None:
        if not key:
            return None
        return self._packages.get(key.strip().upper())

    def list_packages(self, active_only: bool = True) -> list[HostingPackage]:
        packages = sorted(self._packages.values(), key=lambda pkg: pkg.key)
        if active_only:
            packages = [pkg for pkg in packages if pkg.active]
        return packages

    def update_price(self, key: str, price: int) -> HostingPackage:
        """Change a package price. Existing orders keep their snapshot."""
        if price < 0:
            raise ValueError("Price cannot be negative")
        package = self._require(key)
        updated = replace(package, price=price)
        self._packages[package.key.upper()] = updated
        logger.info("Package price updated", package=package.key, old_price=package.price, new_price=price)
        return updated

    def set_active(self, key: str, active: bool) -> HostingPackage:
        package = self._require(key)
        updated = replace(package, active=active)
        self._packages[package.key.upper()] = updated
        logger.info("Package availability changed", package=package.key, active=active)
        return updated

    def _require(self, key: str) -> HostingPackage:
        package = self.get_package(key)
        if package is None:
            raise KeyError(key)
        return package
