"""Catalog read serializers.

The API never writes products; stock only moves through the Inventory
Ledger when order items change.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "stock",
            "in_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_in_stock(self, obj: Product) -> bool:
        return obj.stock > 0
