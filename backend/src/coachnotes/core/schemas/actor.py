"""
Caller identity passed into every note operation.
"""

import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Roles a caller can hold in the practice."""

    ADMIN = "admin"
    COACH = "coach"
    SUPERVISOR = "supervisor"
    CLIENT = "client"


class Actor(BaseModel):
    """Authenticated caller plus the request details recorded in audit entries."""

    id: uuid.UUID = Field(description="User ID")
    role: UserRole = Field(description="User role")
    ip_address: Optional[str] = Field(default=None, description="Client IP address")
    user_agent: Optional[str] = Field(default=None, description="Client user agent")

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
