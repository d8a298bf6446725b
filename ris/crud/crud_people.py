# ris/crud/crud_people.py
"""Lookups for the master-data rows an order references (patients, practitioners, users)."""
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from ris.crud.base import CRUDBase
from ris.db.models.patient import Patient
from ris.db.models.practitioner import Practitioner
from ris.db.models.user import User


class CRUDPractitioner(CRUDBase[Practitioner, BaseModel, BaseModel]):
    def get_by_ihs_number(self, db: Session, *, ihs_number: str) -> Optional[Practitioner]:
        if not ihs_number:
            return None
        return db.query(self.model).filter(self.model.ihs_number == ihs_number).first()


patient = CRUDBase[Patient, BaseModel, BaseModel](Patient)
practitioner = CRUDPractitioner(Practitioner)
user = CRUDBase[User, BaseModel, BaseModel](User)
