"""Database model for accounts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


class Account(db.Model):
    """
    A registered account.

    Only a one-way password hash is stored; ``to_dict`` leaves it out so
    the result can be returned from the API as-is.
    """

    __tablename__ = "accounts"

    id: int = db.Column(db.Integer, primary_key=True)
    username: str = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email: str = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        created_at = self.created_at
        # SQLite hands back naive datetimes; they were stored as UTC
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "created_at": created_at.astimezone(timezone.utc).isoformat(),
        }

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.username}>"
