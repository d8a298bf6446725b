# ris/db/models/procedure.py
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ris.db.base import Base

if TYPE_CHECKING:
    from .modality import Modality


class Procedure(Base):
    """
    Orderable procedure catalog entry (LOINC-coded).
    The preparation flags are copied onto each DetailOrder when it is created.
    """
    __tablename__ = "procedures"  # type: ignore

    code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    loinc_code: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    loinc_display: Mapped[str] = mapped_column(String(255), nullable=False)
    loinc_system: Mapped[str] = mapped_column(String(255), nullable=False, default="http://loinc.org")

    modality_id: Mapped[int] = mapped_column(ForeignKey("modalities.id"), nullable=False, index=True)

    require_fasting: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    require_pregnancy_check: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    require_use_contrast: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contrast_name: Mapped[Optional[str]] = mapped_column(String(255))
    contrast_kfa_code: Mapped[Optional[str]] = mapped_column(String(64))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    modality: Mapped["Modality"] = relationship("Modality", lazy="joined")

    def __repr__(self) -> str:
        return f"<Procedure(id={self.id}, code='{self.code}', loinc='{self.loinc_code}')>"
