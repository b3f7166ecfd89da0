"""FastAPI routes for the hosting package catalogue."""

from fastapi import APIRouter, Depends, HTTPException

from bootstrap import Container, get_container
from catalogue.api.schemas import PackageResponse, SetActiveRequest, UpdatePriceRequest

# ---------------------------------------------------------------------------
# Package Router
# ---------------------------------------------------------------------------
package_router = APIRouter(prefix="/packages", tags=["packages"])


@package_router.get("", response_model=list[PackageResponse])
async def list_packages(
    include_inactive: bool = False, container: Container = Depends(get_container)
) -> list[PackageResponse]:
    packages = container.catalogue.list_packages(active_only=not include_inactive)
    return [PackageResponse.from_package(package) for package in packages]


@package_router.get("/{key}", response_model=PackageResponse)
async def get_package(key: str, container: Container = Depends(get_container)) -> PackageResponse:
    package = container.catalogue.get_package(key)
    if package is None:
        raise HTTPException(status_code=404, detail=f"Package {key} not found")
    return PackageResponse.from_package(package)


@package_router.put("/{key}/price", response_model=PackageResponse)
async def update_price(
    key: str, body: UpdatePriceRequest, container: Container = Depends(get_container)
) -> PackageResponse:
    """Change the list price. Orders already placed keep their snapshot."""
    try:
        package = container.catalogue.update_price(key, body.price)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Package {key} not found")
    return PackageResponse.from_package(package)


@package_router.put("/{key}/active", response_model=PackageResponse)
async def set_active(key: str, body: SetActiveRequest, container: Container = Depends(get_container)) -> PackageResponse:
    try:
        package = container.catalogue.set_active(key, body.active)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Package {key} not found")
    return PackageResponse.from_package(package)
