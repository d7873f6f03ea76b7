from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.orders.constants import OrderState
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO, UpdateOrderDTO
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderItemDjangoRepository,
)
from modules.orders.services import FulfillmentCoordinator, OrderService
from modules.products.exceptions import InsufficientStock
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        products = self._seed_products()
        orders_created = self._seed_orders(customers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user("manager", password="manager123", is_staff=True)
            created += 1
        return created

    def _seed_customers(self) -> list:
        self.stdout.write("Creating customers...")
        User = get_user_model()
        customers = []
        for username in ("ana", "bruno", "carla", "daniel", "elena", "fabian"):
            customer, created = User.objects.get_or_create(username=username)
            if created:
                customer.set_password(f"{username}123")
                customer.save(update_fields=["password"])
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Olla de presión", "Cocina", Decimal("189.90")),
            ("Sartén antiadherente", "Cocina", Decimal("79.50")),
            ("Cafetera italiana", "Cocina", Decimal("65.00")),
            ("Licuadora", "Electrodomésticos", Decimal("349.00")),
            ("Plancha a vapor", "Electrodomésticos", Decimal("159.90")),
            ("Ventilador de pie", "Electrodomésticos", Decimal("210.00")),
            ("Silla de escritorio", "Muebles", Decimal("599.00")),
            ("Mesa plegable", "Muebles", Decimal("429.00")),
            ("Estante de pino", "Muebles", Decimal("275.00")),
            ("Cuaderno universitario", "Papelería", Decimal("12.50")),
            ("Bolígrafo azul", "Papelería", Decimal("2.50")),
            ("Lámpara de escritorio", "Iluminación", Decimal("119.00")),
            ("Foco LED", "Iluminación", Decimal("18.75")),
            ("Mochila escolar", "Accesorios", Decimal("145.00")),
            ("Termo de acero", "Accesorios", Decimal("89.00")),
        ]
        for name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": category,
                    "price": price,
                    "stock": random.randint(10, 200),
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, customers: list, products: list[Product], count: int) -> int:
        """Create orders through the services so stock and totals stay consistent."""
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        order_repository = OrderDjangoRepository()
        item_repository = OrderItemDjangoRepository()
        product_repository = ProductDjangoRepository()
        service = OrderService(order_repository, item_repository, product_repository)
        coordinator = FulfillmentCoordinator(
            order_repository, item_repository, product_repository
        )

        state_weights = [
            (OrderState.PENDING, 0.40),
            (OrderState.PROCESSED, 0.25),
            (OrderState.SHIPPED, 0.20),
            (OrderState.DELIVERED, 0.15),
        ]
        states = [s for s, _ in state_weights]
        weights = [w for _, w in state_weights]

        orders_created = 0
        for _ in range(count):
            order = service.create_order(
                CreateOrderDTO(
                    customer_id=random.choice(customers).pk,
                    date=timezone.now() - timedelta(days=random.randint(0, 30)),
                )
            )
            for product in random.sample(products, k=random.randint(1, 4)):
                try:
                    coordinator.create_item(
                        CreateOrderItemDTO(
                            order_id=order.id,
                            product_id=product.id,
                            quantity=random.randint(1, 5),
                        )
                    )
                except InsufficientStock:
                    continue

            state = random.choices(states, weights=weights, k=1)[0]
            if state != OrderState.PENDING:
                service.update_order(
                    str(order.id),
                    UpdateOrderDTO(version=order.version, state=state),
                )
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
