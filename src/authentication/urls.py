"""URL patterns for authentication endpoints."""

from core.routing import RouteGroup

from .views import LoginView, LogoutView, MeView, RefreshView, RegisterView

routes = RouteGroup("api/v1/auth/", controller="Auth")
routes.add("register/", RegisterView, {"POST": "Register"}, name="auth-register")
routes.add("login/", LoginView, {"POST": "Login"}, name="auth-login")
routes.add("refresh/", RefreshView, {"POST": "Refresh"}, name="auth-refresh")
routes.add("logout/", LogoutView, {"POST": "Logout"}, name="auth-logout")
routes.add("me/", MeView, {"GET": "Me"}, name="auth-me")

urlpatterns = routes.urlpatterns
