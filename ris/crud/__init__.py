# ris/crud/__init__.py
from .crud_order import order
from .crud_detail_order import detail_order
from .crud_modality import modality
from .crud_procedure import procedure
from .crud_people import patient, practitioner, user
