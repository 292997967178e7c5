"""
Authentication and user administration schemas
"""
from typing import List, Optional
from pydantic import Field
from enum import Enum

from storeapp.schemas.common import CamelModel, Identifier
from storeapp.schemas.inventory import Project


class AccessType(str, Enum):
    ALL = "ALL"
    PROJECTS = "PROJECTS"


class UserProfile(CamelModel):
    """Signed-in user or a row of the user directory"""
    id: Identifier
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    access_type: Optional[AccessType] = None
    projects: List[Project] = Field(default_factory=list)


class LoginRequest(CamelModel):
    """User login request"""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "storekeeper@example.com",
                "password": "secret"
            }
        }
    }


class LoginResponse(CamelModel):
    """Token plus the profile it belongs to"""
    token: str
    user: Optional[UserProfile] = None


class UserPayload(CamelModel):
    """User create/update request"""
    name: str
    email: Optional[str] = None
    password: Optional[str] = None
    role: str = "USER"
    access_type: AccessType = AccessType.PROJECTS
    project_ids: List[Identifier] = Field(default_factory=list)
