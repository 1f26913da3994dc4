from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
    SpectacularRedocView,
)

urlpatterns = [
    path("django-admin/", admin.site.urls),

    # --- Accounts (register + JWT) ---
    path("api/v1/", include("apps.accounts.urls")),

    # --- OpenAPI / Docs ---
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/docs/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    # --- Dashboard, viewing, interactions and admin content management ---
    path("", include("apps.content.urls")),
]
