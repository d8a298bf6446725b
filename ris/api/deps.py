# ris/api/deps.py
from typing import Generator, Optional

import structlog
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ris.db.session import SessionLocal
from ris.services.order_service import OrderService

logger = structlog.get_logger(__name__)

ACTOR_HEADER = "X-Actor-Id"


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency to provide a database session per request.
    Ensures the session is closed afterwards.
    """
    db: Optional[Session] = None
    try:
        db = SessionLocal()
        yield db
    finally:
        if db is not None:
            db.close()


def get_actor_id(x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER)) -> int:
    """
    Acting user id as established by the authentication gateway in front of
    this service. Requests without it are rejected.
    """
    if not x_actor_id:
        logger.warning("ACTOR_HEADER_MISSING")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {ACTOR_HEADER} header",
        )
    try:
        return int(x_actor_id)
    except ValueError:
        logger.warning("ACTOR_HEADER_INVALID", value=x_actor_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {ACTOR_HEADER} header",
        )


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)
