# ris/db/models/modality.py
from typing import List, Optional
from sqlalchemy import String, Text, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column

from ris.db.base import Base


class Modality(Base):
    """
    Imaging equipment class/department (CT, MR, DX, ...).
    The code prefixes accession numbers; `aet` lists the AE titles of the
    stations that pull this modality's worklist.
    """
    __tablename__ = "modalities"  # type: ignore

    code: Mapped[str] = mapped_column(
        String(16), unique=True, index=True, nullable=False,
        comment="Short DICOM modality code, e.g. CT, MR, DX."
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    aet: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list,
        comment="AE titles served by this modality."
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def serves_ae_title(self, ae_title: str) -> bool:
        return ae_title in (self.aet or [])

    def __repr__(self) -> str:
        return f"<Modality(id={self.id}, code='{self.code}', active={self.is_active})>"
