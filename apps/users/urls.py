from django.urls import path

from .views import (
    LoginView,
    LogoutView,
    MyinfoView,
    SignUpView,
    TokenRefreshView,
)

urlpatterns = [
    path("signup/", SignUpView.as_view(), name="signup"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("myinfo/", MyinfoView.as_view(), name="myinfo"),
    path("token-refresh/", TokenRefreshView.as_view(), name="token-refresh"),
]
