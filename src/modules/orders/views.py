"""Order API views.

Exposes ``OrderService`` and ``FulfillmentCoordinator`` via HTTP using
DRF ViewSets.  Domain exceptions are caught and translated into
appropriate HTTP status codes; the view never swallows generic
exceptions.

Item mutations that fail on a transient store error (lock timeout,
deadlock) are retried a bounded number of times before answering 503.
"""

from __future__ import annotations

from typing import Optional

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.retry import retry_on
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    EditOrderItemDTO,
    UpdateOrderDTO,
)
from modules.orders.exceptions import (
    ConcurrentModification,
    FulfillmentValidationError,
    InvalidOrder,
    OrderItemNotFound,
    OrderNotFound,
    TransientStoreFailure,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order, OrderItem
from modules.orders.repositories import (
    OrderDjangoRepository,
    OrderItemDjangoRepository,
)
from modules.orders.serializers import (
    AddOrderItemSerializer,
    CreateOrderSerializer,
    EditOrderItemSerializer,
    OrderItemSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import FulfillmentCoordinator, OrderService
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

with_transient_retry = retry_on((TransientStoreFailure,))


def fulfillment_error_response(exc: Exception) -> Response:
    """Translate a service/coordinator failure into an HTTP response.

    ``OrderNotFound`` here means the order vanished in the middle of a
    mutation, which is reported as a retryable 503.
    """
    if isinstance(exc, (OrderItemNotFound, InvalidOrder)):
        return Response(
            {"detail": str(exc), "field": exc.field},
            status=status.HTTP_404_NOT_FOUND,
        )
    if isinstance(exc, FulfillmentValidationError):
        return Response(
            {"detail": str(exc), "field": exc.field},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, ProductNotFound):
        return Response(
            {"detail": str(exc), "field": "product_id"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, InsufficientStock):
        return Response(
            {
                "detail": str(exc),
                "field": "quantity",
                "requested": exc.requested,
                "available": exc.available,
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, ConcurrentModification):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, (TransientStoreFailure, OrderNotFound)):
        return Response(
            {"detail": "The store is busy; please retry the request."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    raise exc


MUTATION_ERRORS = (
    FulfillmentValidationError,
    ProductNotFound,
    InsufficientStock,
    ConcurrentModification,
    TransientStoreFailure,
    OrderNotFound,
)


def _build_services() -> tuple[OrderService, FulfillmentCoordinator]:
    order_repository = OrderDjangoRepository()
    item_repository = OrderItemDjangoRepository()
    product_repository = ProductDjangoRepository()
    service = OrderService(
        order_repository=order_repository,
        item_repository=item_repository,
        product_repository=product_repository,
    )
    coordinator = FulfillmentCoordinator(
        order_repository=order_repository,
        item_repository=item_repository,
        product_repository=product_repository,
    )
    return service, coordinator


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all writes go through the
    service/coordinator layer.
    """

    queryset = Order.objects.select_related("customer")
    filterset_class = OrderFilter
    ordering_fields = ["date", "total", "state"]
    ordering = ["-date", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service, self._coordinator = _build_services()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scope per action."""
        throttle_scope: str | None
        if self.action == "items" and self.request.method == "POST":
            throttle_scope = "order_item_mutation"
        elif self.action in {"list", "retrieve", "items"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Creates an empty ``Pending`` order; items are added through
        ``POST /orders/{id}/items/``.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        dto = CreateOrderDTO(**create_serializer.validated_data)
        try:
            order = self._service.create_order(dto)
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)

        out = OrderSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (state, customer, date range, total range) is handled
        by ``OrderFilter``; ordering by ``OrderingFilter``.  Results are
        paginated with the windowed paginator.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        serializer = OrderSerializer(order)
        return Response(serializer.data)

    # ------------------------------------------------------------------
    # Header update / delete
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Edits customer, date and/or state.  The body must carry the
        ``version`` the client last read; a stale one answers 409.
        """
        update_serializer = UpdateOrderSerializer(data=request.data)
        update_serializer.is_valid(raise_exception=True)

        dto = UpdateOrderDTO(**update_serializer.validated_data)
        try:
            order = with_transient_retry(self._service.update_order)(pk, dto)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)

        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/

        Credits every item's quantity back to stock, then deletes.
        """
        try:
            with_transient_retry(self._service.delete_order)(pk)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Items (nested)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"], filter_backends=[])
    def items(self, request: Request, pk: str | None = None) -> Response:
        """GET/POST /api/v1/orders/{pk}/items/

        GET lists the order's items (``?q=`` searches product names).
        POST adds a line item, debiting product stock.
        """
        if request.method == "POST":
            return self._create_item(request, pk)

        try:
            items = self._service.list_items(pk, request.query_params.get("q", ""))
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        page = self.paginate_queryset(items)
        serializer = OrderItemSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def _create_item(self, request: Request, pk: Optional[str]) -> Response:
        add_serializer = AddOrderItemSerializer(data=request.data)
        add_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderItemDTO(order_id=pk, **add_serializer.validated_data)
        except ValueError:
            return Response(
                {"detail": "Order not found.", "field": "order_id"},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            item = with_transient_retry(self._coordinator.create_item)(dto)
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)

        return Response(
            OrderItemSerializer(item).data, status=status.HTTP_201_CREATED
        )


class OrderItemViewSet(GenericViewSet):
    """Direct access to a single line item by id.

    ``PUT`` needs both ``product_id`` and ``quantity``; ``PATCH`` keeps
    the current value of whichever is omitted.
    """

    queryset = OrderItem.objects.select_related("product")

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._item_repo = OrderItemDjangoRepository()
        _, self._coordinator = _build_services()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = (
            "order_listing" if self.action == "retrieve" else "order_item_mutation"
        )
        return super().get_throttles()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order-items/{pk}/"""
        item = self._item_repo.get_by_id(pk)
        if item is None:
            return Response(
                {"detail": "Order item not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(OrderItemSerializer(item).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/order-items/{pk}/"""
        return self._edit(request.data, pk)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/order-items/{pk}/"""
        current = self._item_repo.get_by_id(pk)
        if current is None:
            return Response(
                {"detail": "Order item not found.", "field": "item_id"},
                status=status.HTTP_404_NOT_FOUND,
            )
        data = {"product_id": current.product_id, "quantity": current.quantity}
        data.update(request.data.items())
        return self._edit(data, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/order-items/{pk}/

        Answers 204 whether or not the item existed.
        """
        try:
            with_transient_retry(self._coordinator.delete_item)(pk)
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _edit(self, data, pk: Optional[str]) -> Response:
        edit_serializer = EditOrderItemSerializer(data=data)
        edit_serializer.is_valid(raise_exception=True)

        try:
            dto = EditOrderItemDTO(item_id=pk, **edit_serializer.validated_data)
        except ValueError:
            return Response(
                {"detail": "Order item not found.", "field": "item_id"},
                status=status.HTTP_404_NOT_FOUND,
            )

        try:
            item = with_transient_retry(self._coordinator.edit_item)(dto)
        except MUTATION_ERRORS as exc:
            return fulfillment_error_response(exc)

        return Response(OrderItemSerializer(item).data)
