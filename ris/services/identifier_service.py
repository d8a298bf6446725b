# ris/services/identifier_service.py
"""
Date-scoped sequential identifiers.

Accession numbers are scoped to (modality code, day) and come in two shapes
that are both in use downstream:

    CONTIGUOUS  DX20240601001
    DASHED      DX-20240601-001

Order numbers are scoped to the day: ORD-20240601-0001.

The next sequence is derived from the highest stored identifier carrying the
day's prefix. That read-then-insert is not atomic on its own; the unique
constraints on ``detail_orders.accession_number`` and ``orders.order_number``
catch the collision and ``order_service`` regenerates and retries.
"""
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.orm import Session

from ris import crud
from ris.core.config import settings
from ris.schemas.enums import AccessionScheme

logger = structlog.get_logger(__name__)

ACCESSION_SEQ_WIDTH = 3
ORDER_SEQ_WIDTH = 4
ORDER_NUMBER_PREFIX = "ORD"


def ris_today() -> date:
    """Today's date in RIS_TIMEZONE, or the host's local zone when unset."""
    if settings.RIS_TIMEZONE:
        return datetime.now(ZoneInfo(settings.RIS_TIMEZONE)).date()
    return datetime.now().astimezone().date()


def resolve_scheme(scheme: Optional[AccessionScheme] = None) -> AccessionScheme:
    if scheme is not None:
        return AccessionScheme(scheme)
    return AccessionScheme(settings.ACCESSION_NUMBER_SCHEME)


def accession_prefix(modality_code: str, on: date, scheme: AccessionScheme) -> str:
    code = modality_code.strip().upper()
    day = on.strftime("%Y%m%d")
    if scheme == AccessionScheme.DASHED:
        return f"{code}-{day}-"
    return f"{code}{day}"


def order_number_prefix(on: date) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{on.strftime('%Y%m%d')}-"


def format_sequence(sequence: int, width: int) -> str:
    return str(sequence).zfill(width)


def parse_sequence(identifier: Optional[str], prefix: str) -> int:
    """
    Numeric suffix of ``identifier`` after ``prefix``.
    Returns 0 when there is no identifier or the suffix is not an integer, so
    the next sequence restarts at 1.
    """
    if not identifier or not identifier.startswith(prefix):
        return 0
    suffix = identifier[len(prefix):]
    try:
        return int(suffix)
    except ValueError:
        logger.warning("IDENTIFIER_SUFFIX_UNPARSEABLE", identifier=identifier, prefix=prefix)
        return 0


def next_accession_sequence(
    db: Session,
    modality_code: str,
    *,
    on: Optional[date] = None,
    scheme: Optional[AccessionScheme] = None,
) -> int:
    """Next free accession sequence for (modality, day) according to the store."""
    on = on or ris_today()
    prefix = accession_prefix(modality_code, on, resolve_scheme(scheme))
    last = crud.detail_order.last_accession_number(db, prefix=prefix)
    return parse_sequence(last, prefix) + 1


def format_accession_number(
    modality_code: str,
    on: date,
    sequence: int,
    scheme: Optional[AccessionScheme] = None,
) -> str:
    prefix = accession_prefix(modality_code, on, resolve_scheme(scheme))
    return f"{prefix}{format_sequence(sequence, ACCESSION_SEQ_WIDTH)}"


def generate_accession_number(
    db: Session,
    modality_code: str,
    *,
    on: Optional[date] = None,
    scheme: Optional[AccessionScheme] = None,
) -> str:
    on = on or ris_today()
    sequence = next_accession_sequence(db, modality_code, on=on, scheme=scheme)
    return format_accession_number(modality_code, on, sequence, scheme)


def next_order_sequence(db: Session, *, on: Optional[date] = None) -> int:
    on = on or ris_today()
    prefix = order_number_prefix(on)
    last = crud.order.last_order_number(db, prefix=prefix)
    return parse_sequence(last, prefix) + 1


def format_order_number(on: date, sequence: int) -> str:
    return f"{order_number_prefix(on)}{format_sequence(sequence, ORDER_SEQ_WIDTH)}"


def generate_order_number(db: Session, *, on: Optional[date] = None) -> str:
    on = on or ris_today()
    return format_order_number(on, next_order_sequence(db, on=on))


def is_identifier_collision(error: Exception) -> bool:
    """True when an IntegrityError was raised by an identifier unique constraint."""
    text = str(getattr(error, "orig", error)).lower()
    return "accession_number" in text or "order_number" in text
