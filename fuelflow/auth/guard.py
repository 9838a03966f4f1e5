"""
Access gating for protected operations.
"""

from functools import wraps
from typing import Callable, Iterable, Optional

from ..errors import NotAuthenticatedError, PermissionDeniedError
from ..models import Role, Session


class AuthGuard:
    """
    Gate an operation on the current session.

    Usage:
        guard = AuthGuard(auth, roles=[Role.ADMIN, Role.MANAGER])
        session = guard.check()

        @guard
        def close_shift(): ...
    """

    def __init__(self, auth, roles: Optional[Iterable] = None):
        self.auth = auth
        self.roles = tuple(roles) if roles else ()

    def allows(self) -> bool:
        """True when ``check`` would pass."""
        session = self.auth.user
        if session is None:
            return False
        return not self.roles or session.has_role(*self.roles)

    def check(self) -> Session:
        """
        Return the current session or raise.

        Raises:
            NotAuthenticatedError: nobody is logged in.
            PermissionDeniedError: the session's role is not allowed.
        """
        session = self.auth.user
        if session is None:
            raise NotAuthenticatedError()

        if self.roles and not session.has_role(*self.roles):
            allowed = ", ".join(r.value if isinstance(r, Role) else str(r) for r in self.roles)
            raise PermissionDeniedError(
                f"Role '{session.role}' is not allowed here (requires: {allowed})"
            )
        return session

    def __call__(self, func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            self.check()
            return func(*args, **kwargs)
        return wrapper


def require_auth(auth, roles: Optional[Iterable] = None) -> AuthGuard:
    """Shorthand for ``AuthGuard(auth, roles)``, usable as a decorator."""
    return AuthGuard(auth, roles)
