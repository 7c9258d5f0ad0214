import argparse
import asyncio

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app import models  # noqa: F401
from app.config import settings
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db")

# --- Application DB ---
app_engine = create_async_engine(
    settings.app_database_url,
    pool_pre_ping=True,
    pool_size=20,
    max_overflow=30,
    pool_timeout=60,
    pool_recycle=300,
    echo=False,
)

AppAsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=app_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables registered on ``Base.metadata`` if they do not exist."""
    if not Base.metadata.tables:
        logger.warning("Base.metadata.tables is EMPTY! No tables will be created.")
    else:
        logger.debug(
            f"Tables registered in Base.metadata: {list(Base.metadata.tables.keys())}"
        )

    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema initialized.")


async def close_db():
    """Closes database connections."""
    logger.info("Closing database connections.")
    await app_engine.dispose()
    logger.info("Database connections closed.")


async def reset_db():
    logger.warning(
        "Attempting to reset the Application database. THIS IS A DESTRUCTIVE OPERATION."
    )
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("All application tables dropped.")

    await init_db()
    logger.info("Application database has been reset and re-initialized.")


DEMO_USERNAMES = ("admin", "testuser")

DEMO_TASKS = (
    (
        "admin",
        "Setup Development Environment",
        "Configure development tools and environment",
        "Completed",
    ),
    (
        "admin",
        "Implement Authentication",
        "Create user authentication system with JWT",
        "InProgress",
    ),
    (
        "testuser",
        "Design Database Schema",
        "Create the SQLAlchemy models for users and tasks",
        "ToDo",
    ),
)


async def seed_demo_data(password: str):
    """
    Create the demo users and a few sample tasks.

    Does nothing if any demo user already exists. Every demo user gets the
    given password, hashed with the configured cost factor.
    """
    from app.db_handlers import TaskDBHandler, UserDBHandler
    from app.models import TaskStatus
    from app.services.password_hasher import PasswordHasher

    user_handler = UserDBHandler()
    task_handler = TaskDBHandler()
    hasher = PasswordHasher(rounds=settings.password_hash_rounds)

    for username in DEMO_USERNAMES:
        if await user_handler.exists_by_username(username):
            logger.info(f"Demo user '{username}' already exists, skipping seed.")
            return

    owners = {}
    for username in DEMO_USERNAMES:
        user = await user_handler.create_user(username, hasher.hash(password))
        owners[username] = user.id
        logger.info(f"Seeded demo user '{username}' ({user.id})")

    for username, title, description, status in DEMO_TASKS:
        await task_handler.create(
            {
                "title": title,
                "description": description,
                "status": TaskStatus(status),
            },
            owners[username],
        )
    logger.info(f"Seeded {len(DEMO_TASKS)} demo tasks.")


async def check_db_connection(engine_to_check=None, db_name="Application DB"):
    """Performs a simple query to check actual DB connectivity."""
    if engine_to_check is None:
        engine_to_check = app_engine

    session_maker = async_sessionmaker(
        bind=engine_to_check,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,  # Match AppAsyncSessionLocal
        autoflush=False,  # Match AppAsyncSessionLocal
    )
    async with session_maker() as session:
        try:
            result = await session.execute(text("SELECT 1"))
            if result.scalar_one() == 1:
                logger.info(
                    f"Successfully connected to {db_name} and executed a test query."
                )
                return True
            logger.error(f"Test query to {db_name} did not return 1. This is unexpected.")
            raise RuntimeError(f"Test query to {db_name} returned an unexpected result.")
        except Exception as e:
            logger.error(
                f"Failed to execute test query on {db_name}: {e}", exc_info=True
            )
            raise RuntimeError(
                f"Database connectivity check failed for {db_name}."
            ) from e


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Taskkeeper Application Database Utility"
    )
    parser.add_argument(
        "action",
        choices=["init", "reset", "seed"],
        help="'init' to create missing tables, "
        "'reset' to drop and recreate all tables, "
        "'seed' to create the demo users and sample tasks.",
    )
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="Password given to every demo user (required for 'seed').",
    )
    args = parser.parse_args()

    if args.action == "init":
        asyncio.run(init_db())
    elif args.action == "reset":
        confirm = input(
            "WARNING: This will delete all data in the Application DB. Are you sure? (yes/no): "
        )
        if confirm.lower() == "yes":
            asyncio.run(reset_db())
        else:
            logger.info("Application Database reset cancelled by user.")
    elif args.action == "seed":
        if not args.password:
            parser.error("--password is required for 'seed'")
        asyncio.run(seed_demo_data(args.password))
    logger.info("Application Database utility script finished.")
