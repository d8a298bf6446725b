# ris/schemas/enums.py

import enum
from typing import Any, Optional


class DetailOrderStatus(str, enum.Enum):
    """
    Lifecycle of one requested procedure line.
    Wire values are shared with the worklist/PACS tooling and must not change.
    """
    IN_REQUEST = "IN_REQUEST"    # Registered, not yet handed to a modality
    IN_QUEUE = "IN_QUEUE"        # Dispatched to the worklist
    IN_PROGRESS = "IN_PROGRESS"  # Acquisition started on the device
    FINAL = "FINAL"              # Reported; terminal


class OrderPriority(str, enum.Enum):
    ROUTINE = "ROUTINE"
    URGENT = "URGENT"
    STAT = "STAT"

    @classmethod
    def normalize(cls, value: Any) -> Optional["OrderPriority"]:
        """
        Coerce a producer-supplied priority into the internal enum.
        Case-insensitive; the legacy ASAP value maps to URGENT. Unknown values
        return None so callers can leave the stored priority alone.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text == "ASAP":
            return cls.URGENT
        try:
            return cls(text)
        except ValueError:
            return None


class OrderOrigin(str, enum.Enum):
    INTERNAL = "INTERNAL"
    EXTERNAL = "EXTERNAL"


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class AccessionScheme(str, enum.Enum):
    CONTIGUOUS = "CONTIGUOUS"  # DX20240601001
    DASHED = "DASHED"          # DX-20240601-001
