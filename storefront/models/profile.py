"""User profile models"""

from pydantic import BaseModel
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


class UserProfile(BaseModel):
    """Profile saved for the signed-in caller"""
    name: str
    email: str
    phone: str
    phoneVerified: bool = False
