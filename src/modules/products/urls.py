"""Catalog routes.

Mounted under ``/api/v1/`` by ``config.urls``, which merges this
registry with the orders one behind a single API root.
"""

from rest_framework.routers import SimpleRouter

from modules.products.views import ProductViewSet

router = SimpleRouter()
router.register("products", ProductViewSet, basename="product")

urlpatterns = router.urls
