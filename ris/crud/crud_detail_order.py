# ris/crud/crud_detail_order.py
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import delete, func
from sqlalchemy.orm import Session, joinedload

from ris.crud.base import CRUDBase
from ris.db.models.order import DetailOrder


class CRUDDetailOrder(CRUDBase[DetailOrder, BaseModel, BaseModel]):

    def get_for_order(self, db: Session, *, order_id: int, detail_id: int) -> Optional[DetailOrder]:
        """A detail line only resolves through the order that owns it."""
        return (
            db.query(self.model)
            .options(
                joinedload(self.model.order),
                joinedload(self.model.procedure),
                joinedload(self.model.modality),
            )
            .filter(self.model.id == detail_id, self.model.order_id == order_id)
            .first()
        )

    def count_for_order(self, db: Session, *, order_id: int) -> int:
        return db.query(func.count(self.model.id)).filter(self.model.order_id == order_id).scalar() or 0

    def last_accession_number(self, db: Session, *, prefix: str) -> Optional[str]:
        """
        Highest stored accession number starting with ``prefix``.
        Longer values sort first so a 4-digit overflow suffix beats 999.
        """
        column = self.model.accession_number
        return (
            db.query(column)
            .filter(column.like(f"{prefix}%"))
            .order_by(func.length(column).desc(), column.desc())
            .limit(1)
            .scalar()
        )

    def delete_by_id(self, db: Session, *, detail_id: int) -> bool:
        result = db.execute(delete(self.model).where(self.model.id == detail_id))
        return result.rowcount > 0


detail_order = CRUDDetailOrder(DetailOrder)
