# ris/crud/crud_order.py

import math
from datetime import date, datetime, time
from typing import List, Optional, Tuple

import structlog
from pydantic import BaseModel
from sqlalchemy import delete, func, or_
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.sql.functions import coalesce

from ris.crud.base import CRUDBase
from ris.db.models.order import Order, DetailOrder
from ris.db.models.practitioner import Practitioner

logger = structlog.get_logger(__name__)

SORTABLE_COLUMNS = {
    "created_at": Order.created_at,
    "order_number": Order.order_number,
    "patient_name": Order.patient_name,
}


def _full_order_options():
    return (
        joinedload(Order.practitioner),
        joinedload(Order.created_by),
        selectinload(Order.details).joinedload(DetailOrder.procedure),
        selectinload(Order.details).joinedload(DetailOrder.modality),
        selectinload(Order.details).joinedload(DetailOrder.requester),
        selectinload(Order.details).joinedload(DetailOrder.performer),
    )


class CRUDOrder(CRUDBase[Order, BaseModel, BaseModel]):

    def get_full(self, db: Session, *, order_id: int) -> Optional[Order]:
        """Order with its detail lines and every optional reference eagerly loaded."""
        return (
            db.query(self.model)
            .options(*_full_order_options())
            .filter(self.model.id == order_id)
            .first()
        )

    def last_order_number(self, db: Session, *, prefix: str) -> Optional[str]:
        column = self.model.order_number
        return (
            db.query(column)
            .filter(column.like(f"{prefix}%"))
            .order_by(func.length(column).desc(), column.desc())
            .limit(1)
            .scalar()
        )

    def get_orders_paginated(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        patient_id: Optional[int] = None,
        practitioner_id: Optional[int] = None,
        order_status: Optional[str] = None,
        order_priority: Optional[str] = None,
        order_from: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> Tuple[List[Order], int]:
        """
        Orders page query. Practitioner is an outer join so orders without a
        resolvable practitioner still match; status/priority/origin match
        when any detail line of the order carries the value.
        """
        query = db.query(self.model).outerjoin(Practitioner, self.model.practitioner_id == Practitioner.id)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    coalesce(self.model.patient_name, '').ilike(search_term),
                    coalesce(self.model.patient_mrn, '').ilike(search_term),
                    coalesce(Practitioner.name, '').ilike(search_term),
                    coalesce(self.model.order_number, '').ilike(search_term),
                )
            )

        if patient_id is not None:
            query = query.filter(self.model.patient_id == patient_id)

        if practitioner_id is not None:
            query = query.filter(self.model.practitioner_id == practitioner_id)

        if order_status:
            query = query.filter(self.model.details.any(DetailOrder.order_status == order_status))

        if order_priority:
            query = query.filter(self.model.details.any(DetailOrder.order_priority == order_priority))

        if order_from:
            query = query.filter(self.model.details.any(DetailOrder.order_from == order_from))

        if date_from:
            query = query.filter(self.model.created_at >= datetime.combine(date_from, time.min))

        if date_to:
            query = query.filter(self.model.created_at <= datetime.combine(date_to, time.max))

        total_count = query.count()

        column = SORTABLE_COLUMNS.get(sort, self.model.created_at)
        ordering = column.asc() if direction.lower() == "asc" else column.desc()
        items = (
            query.options(*_full_order_options())
            .order_by(ordering, self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total_count

    def delete_with_details(self, db: Session, *, order_id: int) -> bool:
        """
        Remove an order and its detail lines, details first for the foreign key.
        Returns False when the order does not exist.
        """
        if db.query(self.model.id).filter(self.model.id == order_id).first() is None:
            return False
        details_deleted = db.execute(delete(DetailOrder).where(DetailOrder.order_id == order_id)).rowcount
        db.execute(delete(self.model).where(self.model.id == order_id))
        logger.info("ORDER_ROWS_DELETED", order_id=order_id, details_deleted=details_deleted)
        return True

    def purge_all(self, db: Session) -> Tuple[int, int]:
        """Delete every detail line, then every order. Returns (details, orders) deleted."""
        details_deleted = db.execute(delete(DetailOrder)).rowcount
        orders_deleted = db.execute(delete(self.model)).rowcount
        return details_deleted, orders_deleted


def total_pages(total: int, per_page: int) -> int:
    return math.ceil(total / per_page) if per_page else 0


order = CRUDOrder(Order)
