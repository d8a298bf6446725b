# ris/crud/crud_procedure.py
from typing import Dict, Iterable

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ris.crud.base import CRUDBase
from ris.db.models.procedure import Procedure


class CRUDProcedure(CRUDBase[Procedure, BaseModel, BaseModel]):

    def get_many(self, db: Session, *, ids: Iterable[int]) -> Dict[int, Procedure]:
        """Fetch several catalog entries at once, keyed by id. Missing ids are absent."""
        wanted = set(ids)
        if not wanted:
            return {}
        rows = db.query(self.model).filter(self.model.id.in_(wanted)).all()
        return {row.id: row for row in rows}


procedure = CRUDProcedure(Procedure)
