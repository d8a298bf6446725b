"""
Correlation id helpers.
The id lives in a context variable and is bound into structlog contextvars so
every log line emitted while handling a request carries it.
"""
from contextvars import ContextVar
from typing import Optional
import uuid
import structlog

_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

def generate_correlation_id() -> str:
    """Generate a new correlation ID with ris prefix"""
    return f"ris-{uuid.uuid4().hex[:12]}"

def set_correlation_id(correlation_id: str) -> str:
    """Set correlation ID in current context and structlog"""
    _correlation_id.set(correlation_id)
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    return correlation_id

def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()

def clear_correlation_id():
    _correlation_id.set(None)
    structlog.contextvars.clear_contextvars()
