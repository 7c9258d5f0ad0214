from app.dependencies.auth import Identity, get_identity, require_identity
from app.dependencies.services import (
    get_auth_service,
    get_password_hasher,
    get_task_service,
    get_task_store,
    get_token_service,
    get_user_store,
)

__all__ = [
    "Identity",
    "get_identity",
    "require_identity",
    "get_auth_service",
    "get_password_hasher",
    "get_task_service",
    "get_task_store",
    "get_token_service",
    "get_user_store",
]
