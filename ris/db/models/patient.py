# ris/db/models/patient.py
from datetime import date
from typing import Optional
from sqlalchemy import String, Date, Enum as DBEnum
from sqlalchemy.orm import Mapped, mapped_column

from ris.db.base import Base
from ris.schemas.enums import Gender


class Patient(Base):
    __tablename__ = "patients"  # type: ignore

    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    mrn: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False, comment="Medical Record Number")
    ihs_number: Mapped[Optional[str]] = mapped_column(String(64), index=True, comment="Health-exchange patient id")
    gender: Mapped[Optional[Gender]] = mapped_column(DBEnum(Gender, name="gender_enum", native_enum=False))
    birth_date: Mapped[Optional[date]] = mapped_column(Date)

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, mrn='{self.mrn}')>"
