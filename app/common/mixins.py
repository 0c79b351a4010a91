"""
Common mixins for ledger models
"""
from sqlalchemy import Column, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from uuid import uuid4


class IdMixin:
    """Mixin adding a UUID primary key"""

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4, index=True)


class StaffOwnedMixin:
    """Mixin for rows recorded by a staff member (staff identity lives in the external auth provider)"""

    staff_id = Column(UUID(as_uuid=True), nullable=False, index=True)


class TimestampMixin:
    """Mixin for models that need timestamp tracking"""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
