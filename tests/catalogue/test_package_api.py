"""Integration tests for the package catalogue endpoints."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(container):
    from app import create_app

    return TestClient(create_app(container))


class TestPackageApi:
    def test_list_active_packages(self, client, catalogue):
        catalogue.set_active("A1", False)
        body = client.get("/packages").json()
        assert len(body) == 17
        assert body[0]["key"] == "A2"

    def test_list_including_inactive(self, client, catalogue):
        catalogue.set_active("A1", False)
        assert len(client.get("/packages", params={"include_inactive": True}).json()) == 18

    def test_get_package(self, client):
        body = client.get("/packages/b1").json()
        assert body["name"] == "B1 - VPS Kroco"
        assert body["family"] == "VPS"
        assert body["limits"]["memory"] == 1024
        assert body["feature_limits"]["allocations"] == 1

    def test_unknown_package(self, client):
        assert client.get("/packages/Z9").status_code == 404

    def test_update_price(self, client, catalogue):
        response = client.put("/packages/A1/price", json={"price": 6500})
        assert response.status_code == 200
        assert catalogue.get_package("A1").price == 6500

    def test_negative_price_is_422(self, client):
        assert client.put("/packages/A1/price", json={"price": -5}).status_code == 422

    def test_set_active(self, client, catalogue):
        body = client.put("/packages/C2/active", json={"active": False}).json()
        assert body["active"] is False
        assert catalogue.get_package("C2").active is False

    def test_update_unknown_package_is_404(self, client):
        assert client.put("/packages/Q1/price", json={"price": 100}).status_code == 404
