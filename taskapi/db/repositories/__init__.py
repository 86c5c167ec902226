# Repository pattern: abstract data access (SOLID - Dependency Inversion)

from taskapi.db.repositories.role_repository import RoleRepository
from taskapi.db.repositories.user_repository import UserRepository

__all__ = ["RoleRepository", "UserRepository"]
