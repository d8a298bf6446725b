# ris/db/models/__init__.py

from ris.db.base import Base

from .user import User
from .patient import Patient
from .practitioner import Practitioner
from .modality import Modality
from .procedure import Procedure
from .order import Order, DetailOrder, PATIENT_SNAPSHOT_FIELDS
