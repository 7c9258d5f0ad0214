"""
User model for authentication and task ownership.

A user is the durable credential record: a unique, case-sensitive username
and a bcrypt hash of the password. The plaintext is never stored, and the
hash never leaves the persistence and hashing layers.

Architecture:
    User → Task
"""

from sqlalchemy import Column, Index, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """
    User account for authentication and task ownership.

    Username uniqueness is enforced by a unique index, so concurrent
    registrations of the same name cannot both succeed.
    """

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_username", "username", unique=True),)
    __private_fields__ = ("hashed_password",)

    username = Column(
        String(100),
        nullable=False,
        comment="Unique, case-sensitive username used for login",
    )

    hashed_password = Column(
        String(255),
        nullable=False,
        comment="Bcrypt hash of the password",
    )

    tasks = relationship(
        "Task",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
        doc="Tasks owned by this user",
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
