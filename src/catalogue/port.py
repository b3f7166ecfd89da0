"""Catalogue port — abstract interface for the hosting package catalogue.

The ordering and provisioning code depend only on this interface. Packages
are immutable records; callers snapshot what they need at order time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class PackageFamily(Enum):
    NODEJS = "NodeJS"
    VPS = "VPS"
    PYTHON = "Python"


@dataclass(frozen=True)
class ResourceLimits:
    """Panel resource limits. Memory, swap and disk are in MiB, cpu in percent."""

    memory: int
    disk: int
    cpu: int
    swap: int = 0
    io: int = 500

    def as_dict(self) -> dict:
        return {
            "memory": self.memory,
            "swap": self.swap,
            "disk": self.disk,
            "io": self.io,
            "cpu": self.cpu,
        }


@dataclass(frozen=True)
class FeatureLimits:
    databases: int
    allocations: int
    backups: int

    def as_dict(self) -> dict:
        return {
            "databases": self.databases,
            "allocations": self.allocations,
            "backups": self.backups,
        }


@dataclass(frozen=True)
class HostingPackage:
    """A sellable hosting plan with its display specs and panel limits."""

    key: str
    name: str
    family: PackageFamily
    tier: str
    price: int
    ram: str
    cpu: str
    storage: str
    resources: ResourceLimits
    features: FeatureLimits
    bandwidth: str = "Unlimited"
    active: bool = True


class CataloguePort(ABC):
    """Abstract interface for catalogue adapters."""

    @abstractmethod
    def get_package(self, key: str) -> HostingPackage | None:
        """Return the package for ``key`` (case-insensitive), or None."""
        ...

    @abstractmethod
    def list_packages(self, active_only: bool = True) -> list[HostingPackage]:
        """Return packages ordered by key."""
        ...
