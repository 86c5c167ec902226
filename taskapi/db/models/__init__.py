from taskapi.db.models.role import Role
from taskapi.db.models.user import User

__all__ = ["Role", "User"]
