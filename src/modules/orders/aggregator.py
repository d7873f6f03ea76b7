"""Order Total Aggregator.

``Order.total`` is never read-modify-written.  It is recomputed from the
item rows persisted *in the current transaction* and written with one
``UPDATE``.  When two transactions touch different items of the same
order, whichever commits last writes a total derived from rows that
include both changes, so no update is lost.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

from modules.orders.constants import MAX_MONEY, round_money
from modules.orders.exceptions import AmountOutOfRange, OrderNotFound

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import (
        IOrderItemRepository,
        IOrderRepository,
    )

logger = structlog.get_logger(__name__)


class OrderTotalAggregator:
    def __init__(
        self,
        order_repository: IOrderRepository,
        item_repository: IOrderItemRepository,
    ) -> None:
        self._order_repo = order_repository
        self._item_repo = item_repository

    def recompute(self, order_id) -> Decimal:
        """Set ``order.total`` to the rounded sum of its item subtotals.

        Idempotent.  Returns the total written.

        Raises:
            AmountOutOfRange: the sum does not fit the total column;
                nothing is written.
            OrderNotFound: the order row is gone.
        """
        total = round_money(self._item_repo.sum_subtotals(str(order_id)))
        if total > MAX_MONEY:
            raise AmountOutOfRange(
                f"Order total {total} exceeds the maximum of {MAX_MONEY}.",
                field="total",
            )
        if not self._order_repo.write_total(str(order_id), total):
            logger.error("order.total_target_missing", order_id=str(order_id))
            raise OrderNotFound(f"Order {order_id} not found while recomputing total.")
        logger.info("order.total_recomputed", order_id=str(order_id), total=str(total))
        return total
