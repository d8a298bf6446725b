# ris/db/models/user.py
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ris.db.base import Base


class User(Base):
    """
    Application user. Authentication lives outside this service; the row is
    only referenced as the creator of orders.
    """
    __tablename__ = 'users'  # type: ignore

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
