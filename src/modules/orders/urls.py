"""Order and line-item routes (see ``modules.products.urls``)."""

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderItemViewSet, OrderViewSet

router = SimpleRouter()
router.register("orders", OrderViewSet, basename="order")
# Items are created under /orders/{id}/items/ and addressed directly here.
router.register("order-items", OrderItemViewSet, basename="order-item")

urlpatterns = router.urls
