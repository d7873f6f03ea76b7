"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.  Input serializers only check shape;
ranges such as ``quantity >= 1`` are reported by the coordinator so
the error body carries the offending ``field``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order header creation payload."""

    customer_id = serializers.IntegerField()
    date = serializers.DateTimeField(required=False)


class UpdateOrderSerializer(serializers.Serializer):
    """Validates a header edit; ``version`` is the one the caller last read."""

    version = serializers.IntegerField(min_value=1)
    customer_id = serializers.IntegerField(required=False)
    date = serializers.DateTimeField(required=False)
    state = serializers.CharField(required=False, max_length=20)


class AddOrderItemSerializer(serializers.Serializer):
    """Validates ``POST /orders/{id}/items/``."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()


class EditOrderItemSerializer(serializers.Serializer):
    """Validates ``PUT/PATCH /order-items/{id}/``.

    On PATCH, omitted fields fall back to the item's current values.
    """

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items."""

    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "order_id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    items = OrderItemSerializer(many=True, read_only=True)
    customer_username = serializers.CharField(
        source="customer.get_username", read_only=True
    )

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_id",
            "customer_username",
            "date",
            "state",
            "total",
            "version",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_id",
            "date",
            "state",
            "total",
            "version",
        ]
        read_only_fields = fields
