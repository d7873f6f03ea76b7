from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from modules.orders.urls import router as orders_router
from modules.products.urls import router as products_router

# One browsable root for /api/v1/ over every module's viewsets.
api_v1 = DefaultRouter()
for module_router in (products_router, orders_router):
    api_v1.registry.extend(module_router.registry)

auth_patterns = [
    path("token/", TokenObtainPairView.as_view(), name="token_obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("token/verify/", TokenVerifyView.as_view(), name="token_verify"),
]

docs_patterns = [
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]

urlpatterns = [
    path("", include("modules.core.urls")),
    path("admin/", admin.site.urls),
    path("api/v1/auth/", include(auth_patterns)),
    path("api/v1/", include(api_v1.urls)),
    path("api/", include(docs_patterns)),
]
