"""
Providers for stores and services, overridable through
``app.dependency_overrides`` (the test suite swaps in in-memory stores).
"""

from functools import lru_cache

from fastapi import Depends

from app.config import settings
from app.db_handlers.task import TaskDBHandler
from app.db_handlers.user import UserDBHandler
from app.services.auth_service import AuthService
from app.services.password_hasher import PasswordHasher
from app.services.stores import TaskStore, UserStore
from app.services.task_service import TaskService
from app.services.token_service import TokenService


def get_user_store() -> UserStore:
    return UserDBHandler()


def get_task_store() -> TaskStore:
    return TaskDBHandler()


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.password_hash_rounds)


@lru_cache
def get_token_service() -> TokenService:
    """Built once from settings; raises ``ConfigurationError`` if they are unusable."""
    return TokenService.from_settings(settings)


def get_auth_service(
    user_store: UserStore = Depends(get_user_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(user_store, hasher, token_service)


def get_task_service(task_store: TaskStore = Depends(get_task_store)) -> TaskService:
    return TaskService(task_store)
