"""Order service layer (Use Cases).

``FulfillmentCoordinator`` owns every line-item mutation.  Each of its
operations is one all-or-nothing transaction spanning the Inventory
Ledger (product stock), the line-item repository and the Order Total
Aggregator, in that order:

    pre-validate  ->  BEGIN  ->  lock rows  ->  ledger  ->  item row
                  ->  recompute order total  ->  COMMIT

If the stock check fails, no item row or order total is ever touched,
and a crash between steps cannot leave stock debited without the
matching item (the transaction holds both effects or neither).

``OrderService`` handles the order header: creation, versioned edits of
customer/date/state, deletion (crediting back every item first) and
read models.

Failures are never swallowed: every path either commits, or rolls back
and raises a typed exception from ``modules.orders.exceptions`` /
``modules.products.exceptions``.
"""

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.db import OperationalError, transaction

from modules.core.search import rank_by_name
from modules.orders.aggregator import OrderTotalAggregator
from modules.orders.constants import (
    MAX_ITEM_QUANTITY,
    MAX_MONEY,
    MIN_ITEM_QUANTITY,
    OrderState,
    line_subtotal,
)
from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderItemAdded,
    OrderItemChanged,
    OrderItemRemoved,
    OrderUpdated,
)
from modules.orders.exceptions import (
    AmountOutOfRange,
    ConcurrentModification,
    CustomerNotFound,
    FulfillmentError,
    InvalidOrder,
    InvalidOrderState,
    InvalidProduct,
    InvalidQuantity,
    OrderItemNotFound,
    OrderNotFound,
    TransientStoreFailure,
)
from modules.orders.models import OrderItem
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.ledger import InventoryLedger
from shared.infrastructure.bus import event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import (
        CreateOrderDTO,
        CreateOrderItemDTO,
        EditOrderItemDTO,
        UpdateOrderDTO,
    )
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import (
        IOrderItemRepository,
        IOrderRepository,
    )
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


@contextmanager
def unit_of_work(log: Any, operation: str) -> Iterator[None]:
    """Run the block in one transaction and classify what made it fail.

    Lock-wait timeouts and deadlocks surface from the driver as
    ``OperationalError``; they are re-raised as ``TransientStoreFailure``
    once ``transaction.atomic`` has rolled back.
    """
    try:
        with transaction.atomic():
            yield
    except OperationalError as exc:
        log.warning(f"{operation}.transient_failure", error=str(exc))
        raise TransientStoreFailure(str(exc)) from exc
    except (FulfillmentError, InsufficientStock, ProductNotFound) as exc:
        log.info(f"{operation}.rolled_back", reason=type(exc).__name__)
        raise


class FulfillmentCoordinator:
    """Create, edit and delete order line items atomically.

    Receives repositories via constructor injection (DIP); the ledger,
    aggregator and event bus default to the standard implementations.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        item_repository: IOrderItemRepository,
        product_repository: IProductRepository,
        ledger: Optional[InventoryLedger] = None,
        aggregator: Optional[OrderTotalAggregator] = None,
        bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._item_repo = item_repository
        self._product_repo = product_repository
        self._ledger = (
            ledger if ledger is not None else InventoryLedger(product_repository)
        )
        self._aggregator = (
            aggregator
            if aggregator is not None
            else OrderTotalAggregator(order_repository, item_repository)
        )
        self._bus = bus if bus is not None else event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_item(self, dto: CreateOrderItemDTO) -> OrderItem:
        """Add a line item, debiting its quantity from product stock.

        Raises:
            InvalidQuantity / InvalidOrder / InvalidProduct: rejected
                before any transaction opens.
            InsufficientStock: stock under the row lock is too low;
                ``exc.available`` carries the current stock.
            OrderNotFound: the order vanished before the total was written.
            TransientStoreFailure: lock timeout or deadlock; retryable.
        """
        log = logger.bind(
            order_id=str(dto.order_id),
            product_id=str(dto.product_id),
            quantity=dto.quantity,
        )
        log.info("order_item.create_started")

        self._require_quantity(dto.quantity)
        if not self._order_repo.exists(str(dto.order_id)):
            raise InvalidOrder(f"Order {dto.order_id} does not exist.")
        if self._product_repo.get_by_id(str(dto.product_id)) is None:
            raise InvalidProduct(f"Product {dto.product_id} does not exist.")

        with unit_of_work(log, "order_item.create"):
            if str(dto.product_id) not in self._ledger.lock([dto.product_id]):
                raise InvalidProduct(f"Product {dto.product_id} does not exist.")

            product = self._ledger.debit(dto.product_id, dto.quantity)

            item = OrderItem(
                order_id=dto.order_id,
                product_id=product.id,
                quantity=dto.quantity,
                unit_price=product.price,
                subtotal=self._subtotal(product.price, dto.quantity),
            )
            self._item_repo.insert(item)

            total = self._aggregator.recompute(dto.order_id)
            self._bus.publish_on_commit(
                [OrderItemAdded(aggregate_id=dto.order_id, item_id=item.id)]
            )

        log.info(
            "order_item.created",
            item_id=str(item.id),
            subtotal=str(item.subtotal),
            order_total=str(total),
        )
        return item

    def edit_item(self, dto: EditOrderItemDTO) -> OrderItem:
        """Change the product and/or quantity of a line item.

        Same product: only the net difference touches the ledger
        (debit when growing, immediate credit when shrinking, nothing
        when unchanged).  Different product: the old reservation is
        credited back in full, then the new product is debited.

        Raises:
            InvalidQuantity / OrderItemNotFound / InvalidProduct /
                InvalidOrder: rejected before any transaction opens.
            InsufficientStock: checked against the (new) product's stock.
            OrderNotFound, TransientStoreFailure: as for ``create_item``.
        """
        log = logger.bind(
            item_id=str(dto.item_id),
            product_id=str(dto.product_id),
            quantity=dto.quantity,
        )
        log.info("order_item.edit_started")

        self._require_quantity(dto.quantity)
        current = self._item_repo.get_by_id(str(dto.item_id))
        if current is None:
            raise OrderItemNotFound(f"Order item {dto.item_id} does not exist.")
        if self._product_repo.get_by_id(str(dto.product_id)) is None:
            raise InvalidProduct(f"Product {dto.product_id} does not exist.")
        if not self._order_repo.exists(str(current.order_id)):
            raise InvalidOrder(f"Order {current.order_id} does not exist.")

        with unit_of_work(log, "order_item.edit"):
            item = self._item_repo.get_for_update(str(dto.item_id))
            if item is None:
                raise OrderItemNotFound(f"Order item {dto.item_id} does not exist.")

            original_product_id = item.product_id
            original_quantity = item.quantity
            locked = self._ledger.lock([original_product_id, dto.product_id])
            product = locked.get(str(dto.product_id))
            if product is None:
                raise InvalidProduct(f"Product {dto.product_id} does not exist.")

            if str(original_product_id) == str(dto.product_id):
                diff = dto.quantity - original_quantity
                if diff > 0:
                    product = self._ledger.debit(product.id, diff)
                elif diff < 0:
                    product = self._ledger.credit(product.id, -diff)
            else:
                self._ledger.credit(original_product_id, original_quantity)
                product = self._ledger.debit(product.id, dto.quantity)

            item.product_id = product.id
            item.quantity = dto.quantity
            item.unit_price = product.price
            item.subtotal = self._subtotal(product.price, dto.quantity)
            self._item_repo.update(item)

            total = self._aggregator.recompute(item.order_id)
            self._bus.publish_on_commit(
                [OrderItemChanged(aggregate_id=item.order_id, item_id=item.id)]
            )

        log.info(
            "order_item.edited",
            order_id=str(item.order_id),
            previous_product_id=str(original_product_id),
            previous_quantity=original_quantity,
            subtotal=str(item.subtotal),
            order_total=str(total),
        )
        return item

    def delete_item(self, item_id) -> Optional[OrderItem]:
        """Remove a line item and credit its quantity back to stock.

        Deleting an item that does not exist is a successful no-op and
        returns ``None``; otherwise the removed row is returned.

        Raises:
            OrderNotFound, TransientStoreFailure: as for ``create_item``.
        """
        log = logger.bind(item_id=str(item_id))
        log.info("order_item.delete_started")

        with unit_of_work(log, "order_item.delete"):
            removed = self._item_repo.delete(str(item_id))
            if removed is None:
                log.info("order_item.delete_noop")
                return None

            self._ledger.credit(removed.product_id, removed.quantity)
            total = self._aggregator.recompute(removed.order_id)
            self._bus.publish_on_commit(
                [OrderItemRemoved(aggregate_id=removed.order_id, item_id=removed.id)]
            )

        log.info(
            "order_item.deleted",
            order_id=str(removed.order_id),
            credited=removed.quantity,
            order_total=str(total),
        )
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_quantity(quantity: int) -> None:
        if quantity is None or not MIN_ITEM_QUANTITY <= quantity <= MAX_ITEM_QUANTITY:
            raise InvalidQuantity(
                f"Quantity must be between {MIN_ITEM_QUANTITY} and {MAX_ITEM_QUANTITY}."
            )

    @staticmethod
    def _subtotal(price, quantity: int):
        subtotal = line_subtotal(price, quantity)
        if subtotal > MAX_MONEY:
            raise AmountOutOfRange(
                f"Subtotal {subtotal} exceeds the maximum of {MAX_MONEY}.",
                field="subtotal",
            )
        return subtotal


class OrderService:
    """Application service for the order header and read models."""

    def __init__(
        self,
        order_repository: IOrderRepository,
        item_repository: IOrderItemRepository,
        product_repository: IProductRepository,
        ledger: Optional[InventoryLedger] = None,
    ) -> None:
        self._order_repo = order_repository
        self._item_repo = item_repository
        self._ledger = (
            ledger if ledger is not None else InventoryLedger(product_repository)
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create an empty ``Pending`` order with total 0.00.

        Raises:
            CustomerNotFound: the customer user does not exist.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        self._require_customer(dto.customer_id)

        with unit_of_work(log, "order.create"):
            order = self._order_repo.create(
                {"customer_id": dto.customer_id, "date": dto.date}
            )
            order.add_domain_event(OrderCreated(aggregate_id=order.id))
            self._order_repo.record_events(order)

        log.info("order.creation_completed", order_id=str(order.id))
        return self._order_repo.get_by_id(str(order.id)) or order

    def update_order(self, order_id: str, dto: UpdateOrderDTO) -> Order:
        """Edit customer, date and/or state if nobody changed the order since
        the caller read ``dto.version``.

        The total is never touched here.

        Raises:
            InvalidOrderState: unknown state value.
            CustomerNotFound: the new customer does not exist.
            OrderNotFound: the order does not exist.
            ConcurrentModification: the stored version differs; reload
                and retry.
        """
        log = logger.bind(order_id=str(order_id), expected_version=dto.version)

        if dto.state is not None and dto.state not in OrderState.values:
            raise InvalidOrderState(
                f"Invalid state {dto.state!r}; expected one of "
                f"{', '.join(OrderState.values)}."
            )
        if dto.customer_id is not None:
            self._require_customer(dto.customer_id)

        data: Dict[str, Any] = {
            field: getattr(dto, field)
            for field in ("customer_id", "date", "state")
            if getattr(dto, field) is not None
        }

        with unit_of_work(log, "order.update"):
            if not self._order_repo.update_versioned(str(order_id), dto.version, data):
                if not self._order_repo.exists(str(order_id)):
                    raise OrderNotFound(f"Order {order_id} not found.")
                log.warning("order.stale_version")
                raise ConcurrentModification(
                    f"Order {order_id} was modified by someone else; "
                    "reload it and try again."
                )
            order = self._order_repo.get_by_id(str(order_id))
            order.add_domain_event(OrderUpdated(aggregate_id=order.id))
            self._order_repo.record_events(order)

        log.info("order.updated", version=order.version, state=order.state)
        return order

    def delete_order(self, order_id: str) -> None:
        """Delete an order after crediting back every item's quantity.

        Rows are locked order -> items -> products (ascending id), the
        same item-before-product order ``edit_item`` uses.

        Raises:
            OrderNotFound: the order does not exist.
        """
        log = logger.bind(order_id=str(order_id))

        with unit_of_work(log, "order.delete"):
            order = self._order_repo.get_for_update(str(order_id))
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")

            reserved: Dict[str, int] = defaultdict(int)
            for item in self._item_repo.list_by_order(str(order_id), lock=True):
                reserved[str(item.product_id)] += item.quantity

            self._ledger.lock(reserved.keys())
            for product_id in sorted(reserved):
                self._ledger.credit(product_id, reserved[product_id])

            order.add_domain_event(OrderDeleted(aggregate_id=order.id))
            self._order_repo.delete(order)

        log.info("order.deleted_with_credit_back", products=len(reserved))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)

    def list_items(self, order_id: str, query: str = "") -> List[OrderItem]:
        """Items of an order, optionally searched by product name.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        if not self._order_repo.exists(str(order_id)):
            raise OrderNotFound(f"Order {order_id} not found.")
        items = self._item_repo.list_by_order(str(order_id))
        return rank_by_name(items, query, name_of=lambda item: item.product.name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_customer(customer_id: int) -> None:
        if not get_user_model().objects.filter(pk=customer_id).exists():
            raise CustomerNotFound(f"Customer {customer_id} not found.")
