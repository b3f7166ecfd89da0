"""Pydantic API schemas for the hosting package catalogue."""

from pydantic import BaseModel, Field

from catalogue.port import HostingPackage


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class UpdatePriceRequest(BaseModel):
    price: int = Field(ge=0)


class SetActiveRequest(BaseModel):
    active: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class PackageResponse(BaseModel):
    key: str
    name: str
    family: str
    tier: str
    price: int
    ram: str
    cpu: str
    storage: str
    bandwidth: str
    active: bool
    limits: dict
    feature_limits: dict

    @classmethod
    def from_package(cls, package: HostingPackage) -> "PackageResponse":
        return cls(
            key=package.key,
            name=package.name,
            family=package.family.value,
            tier=package.tier,
            price=package.price,
            ram=package.ram,
            cpu=package.cpu,
            storage=package.storage,
            bandwidth=package.bandwidth,
            active=package.active,
            limits=package.resources.as_dict(),
            feature_limits=package.features.as_dict(),
        )
