"""Integration tests for the order header endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.dtos import CreateOrderItemDTO
from modules.orders.models import Order

pytestmark = pytest.mark.integration


class TestCreateOrder:
    def test_create_returns_201_with_pending_empty_order(self, auth_client, customer):
        response = auth_client.post(
            "/api/v1/orders/", {"customer_id": customer.pk}, format="json"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["state"] == "Pending"
        assert data["total"] == "0.00"
        assert data["version"] == 1
        assert data["items"] == []
        assert data["customer_username"] == customer.username

    def test_create_ignores_client_total_and_state(self, auth_client, customer):
        response = auth_client.post(
            "/api/v1/orders/",
            {"customer_id": customer.pk, "total": "99.00", "state": "Shipped"},
            format="json",
        )

        data = response.json()
        assert (data["total"], data["state"]) == ("0.00", "Pending")

    def test_unknown_customer_returns_400_with_field(self, auth_client):
        response = auth_client.post(
            "/api/v1/orders/", {"customer_id": 999999}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["field"] == "customer_id"

    def test_missing_customer_returns_400(self, auth_client):
        response = auth_client.post("/api/v1/orders/", {}, format="json")
        assert response.status_code == 400


class TestListAndRetrieve:
    def test_list_filters_by_state(self, auth_client, customer):
        Order.objects.create(customer=customer, state="Shipped")
        Order.objects.create(customer=customer)

        response = auth_client.get("/api/v1/orders/", {"state": "Shipped"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["results"][0]["state"] == "Shipped"

    def test_retrieve_includes_items(self, auth_client, order, product, coordinator):
        coordinator.create_item(
            CreateOrderItemDTO(order_id=order.id, product_id=product.id, quantity=2)
        )

        response = auth_client.get(f"/api/v1/orders/{order.id}/")

        data = response.json()
        assert data["total"] == "5.00"
        assert [item["quantity"] for item in data["items"]] == [2]
        assert data["items"][0]["product_name"] == product.name

    @pytest.mark.parametrize("pk", [lambda: uuid4(), lambda: "nope"])
    def test_retrieve_missing_returns_404(self, auth_client, pk):
        response = auth_client.get(f"/api/v1/orders/{pk()}/")
        assert response.status_code == 404


class TestUpdateOrder:
    def test_patch_with_current_version(self, auth_client, order):
        response = auth_client.patch(
            f"/api/v1/orders/{order.id}/",
            {"version": 1, "state": "Processed"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["state"] == "Processed"
        assert response.json()["version"] == 2

    def test_patch_with_stale_version_returns_409(self, auth_client, order):
        auth_client.patch(
            f"/api/v1/orders/{order.id}/",
            {"version": 1, "state": "Processed"},
            format="json",
        )
        response = auth_client.patch(
            f"/api/v1/orders/{order.id}/",
            {"version": 1, "state": "Shipped"},
            format="json",
        )

        assert response.status_code == 409
        order.refresh_from_db()
        assert order.state == "Processed"

    def test_patch_without_version_returns_400(self, auth_client, order):
        response = auth_client.patch(
            f"/api/v1/orders/{order.id}/", {"state": "Shipped"}, format="json"
        )
        assert response.status_code == 400

    def test_patch_invalid_state_returns_400(self, auth_client, order):
        response = auth_client.patch(
            f"/api/v1/orders/{order.id}/",
            {"version": 1, "state": "Lost"},
            format="json",
        )
        assert response.status_code == 400
        assert response.json()["field"] == "state"

    def test_patch_missing_order_returns_404(self, auth_client):
        response = auth_client.patch(
            f"/api/v1/orders/{uuid4()}/", {"version": 1}, format="json"
        )
        assert response.status_code == 404


class TestDeleteOrder:
    def test_delete_restores_stock(self, auth_client, order, product):
        auth_client.post(
            f"/api/v1/orders/{order.id}/items/",
            {"product_id": str(product.id), "quantity": 6},
            format="json",
        )

        response = auth_client.delete(f"/api/v1/orders/{order.id}/")

        assert response.status_code == 204
        product.refresh_from_db()
        assert product.stock == 10
        assert not Order.objects.filter(id=order.id).exists()

    def test_delete_missing_returns_404(self, auth_client):
        response = auth_client.delete(f"/api/v1/orders/{uuid4()}/")
        assert response.status_code == 404
