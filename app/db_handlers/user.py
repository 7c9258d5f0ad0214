from __future__ import annotations

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.user import User
from app.services.stores import DuplicateUsernameError
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers.user")


class UserDBHandler(BaseDBHandler[User]):
    def __init__(self):
        super().__init__(User)

    @check_local_db
    async def find_by_username(
        self, username: str, *, db: AsyncSession = None
    ) -> User | None:
        """Get a user by exact (case-sensitive) username."""
        if not username or not username.strip():
            return None
        try:
            stmt = select(User).where(User.username == username)
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user by username '{username}': {e}")
            raise

    @check_local_db
    async def exists_by_username(self, username: str, *, db: AsyncSession = None) -> bool:
        if not username or not username.strip():
            return False
        stmt = select(exists().where(User.username == username))
        result = await db.execute(stmt)
        return bool(result.scalar())

    @check_local_db
    async def create_user(
        self, username: str, hashed_password: str, *, db: AsyncSession = None
    ) -> User:
        """Insert a user; the unique index on username decides races."""
        try:
            return await self.create(
                {"username": username, "hashed_password": hashed_password}, db=db
            )
        except IntegrityError as e:
            logger.info(f"Username '{username}' already exists")
            raise DuplicateUsernameError(username) from e
