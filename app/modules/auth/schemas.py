from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from enum import Enum


class UserRole(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class AuthContext(BaseModel):
    user_id: UUID
    user_role: Optional[UserRole] = None

    @property
    def is_admin(self) -> bool:
        """Owner or manager: may approve receivings and correct closed days"""
        return self.user_role in (UserRole.OWNER, UserRole.MANAGER)
