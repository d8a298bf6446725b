# ris/db/models/practitioner.py
from typing import Optional
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ris.db.base import Base


class Practitioner(Base):
    __tablename__ = "practitioners"  # type: ignore

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    ihs_number: Mapped[Optional[str]] = mapped_column(String(64), index=True, comment="Health-exchange practitioner id")
    profession: Mapped[Optional[str]] = mapped_column(String(64))

    def __repr__(self) -> str:
        return f"<Practitioner(id={self.id}, name='{self.name}')>"
