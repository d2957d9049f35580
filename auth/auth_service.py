# auth/auth_service.py

from typing import Optional

import config


class AuthResult:
    def __init__(self, authenticated: bool, user: Optional[str], role: Optional[str], error: Optional[str] = None):
        self.authenticated = authenticated
        self.user = user
        self.role = role
        self.error = error


class AuthService:
    """
    The Admin page only talks to AuthService.
    Today it is one shared password from config (no user accounts).
    The interface stays the same if that ever changes.
    """

    def __init__(self, mode="local", admin_password: Optional[str] = None):
        self.mode = mode
        self.admin_password = admin_password if admin_password is not None else config.ADMIN_PASSWORD

    def unlock_admin(self, password: str) -> AuthResult:
        if self.mode == "local":
            if password and password == self.admin_password:
                return AuthResult(authenticated=True, user="admin", role="admin")
            return AuthResult(
                authenticated=False,
                user=None,
                role=None,
                error="Incorrect password"
            )

        return AuthResult(
            authenticated=False,
            user=None,
            role=None,
            error=f"Unknown auth mode {self.mode}"
        )
