"""
Authentication dependencies for FastAPI.

Tokens are issued by the external identity provider; this module only
verifies them and exposes the staff identity and role to the routers.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from app.modules.auth.schemas import AuthContext, UserRole
from app.core.config import settings

# Security scheme
security = HTTPBearer()


class AuthDependencies:
    """Reusable authentication dependencies."""

    @staticmethod
    def get_auth_context(
        credentials: HTTPAuthorizationCredentials = Depends(security)
    ) -> AuthContext:
        """
        Build the auth context from the bearer JWT.
        The token must carry the staff id in `sub` and a `role` claim.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = jwt.decode(
                credentials.credentials,
                settings.APP_SECRET_STRING,
                algorithms=[settings.ALGORITHM]
            )
            user_id = payload.get("sub")
            role = payload.get("role")
            if user_id is None:
                raise credentials_exception
            user_uuid = UUID(str(user_id))
            user_role = UserRole(role) if role else None
        except (jwt.PyJWTError, ValueError):
            raise credentials_exception

        return AuthContext(user_id=user_uuid, user_role=user_role)

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependency requiring one of the given roles.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if auth_context.user_role is None or auth_context.user_role.value not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"One of these roles is required: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker

    @staticmethod
    def require_owner_or_manager():
        return AuthDependencies.require_role(["owner", "manager"])

    @staticmethod
    def require_any_role():
        return AuthDependencies.require_role(["owner", "manager", "staff"])


