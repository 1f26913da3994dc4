from django.urls import path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,   # username/password -> {access, refresh}
    TokenRefreshView,      # {refresh} -> {access}
    TokenVerifyView,       # {token} -> {} if valid
)

from .views import RegisterView, MeView

urlpatterns = [
    path("auth/register/", RegisterView.as_view(), name="auth-register"),
    path("auth/me/", MeView.as_view(), name="auth-me"),

    path("auth/jwt/create/",  TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(),   name="jwt-refresh"),
    path("auth/jwt/verify/",  TokenVerifyView.as_view(),    name="jwt-verify"),
]
