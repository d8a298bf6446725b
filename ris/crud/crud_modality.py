# ris/crud/crud_modality.py
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ris.crud.base import CRUDBase
from ris.db.models.modality import Modality


class CRUDModality(CRUDBase[Modality, BaseModel, BaseModel]):

    def get_by_code(self, db: Session, *, code: str) -> Optional[Modality]:
        """Case-insensitive lookup by modality code (CT, MR, DX, ...)."""
        if not code:
            return None
        return db.query(self.model).filter(self.model.code == code.strip().upper()).first()


modality = CRUDModality(Modality)
