"""DRF authenticator that surfaces the user attached by ``JWTAuthMiddleware``.

Token parsing happens once in the middleware; DRF only needs to see the
resulting user so ``request.user`` and the permission classes agree.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Return the middleware's user, or ``None`` for anonymous requests."""

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        user = getattr(getattr(request, "_request", None), "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return user, None


__all__ = ["MiddlewareUserAuthentication"]
