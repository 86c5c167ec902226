"""Role request/response schemas - REST API contract and validation."""

import re
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel
from pydantic_core import PydanticCustomError

# Letters (ASCII plus the Latin-1 range, so accents and ñ/Ñ) and whitespace only
ROLE_NAME_PATTERN = re.compile(r"^[a-zA-ZÀ-ÿ\s]+$")
ROLE_NAME_MIN_LENGTH = 2
ROLE_NAME_MAX_LENGTH = 100


def validate_role_name(value: str) -> str:
    """Trim, then enforce required / length / allowed characters. Raises PydanticCustomError."""
    value = value.strip()
    if not value:
        raise PydanticCustomError("role_name_required", "Role name is required")
    if not ROLE_NAME_MIN_LENGTH <= len(value) <= ROLE_NAME_MAX_LENGTH:
        raise PydanticCustomError(
            "role_name_length",
            "Role name must be between {min} and {max} characters",
            {"min": ROLE_NAME_MIN_LENGTH, "max": ROLE_NAME_MAX_LENGTH},
        )
    if not ROLE_NAME_PATTERN.match(value):
        raise PydanticCustomError("role_name_pattern", "Role name may only contain letters and spaces")
    return value


RoleName = Annotated[str, AfterValidator(validate_role_name)]


class RoleCreate(BaseModel):
    name: RoleName


class RoleUpdate(BaseModel):
    name: RoleName


class RoleRead(BaseModel):
    id: int
    name: str
    is_active: bool
    user_count: int = 0
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class RoleShare(BaseModel):
    role_name: str
    user_count: int
    percentage: float


class RoleStatistics(BaseModel):
    total_roles: int
    active_roles: int
    total_users: int
    role_distribution: list[RoleShare]
    most_popular_role: str
