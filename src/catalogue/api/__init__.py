"""Catalogue API package."""

from catalogue.api.routes import package_router

__all__ = ["package_router"]
