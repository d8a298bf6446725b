# --- Enums ---
from .enums import (
    DetailOrderStatus,
    OrderPriority,
    OrderOrigin,
    Gender,
    AccessionScheme,
)

# --- Order Schemas ---
from .order import (
    OrderCreate,
    OrderUpdate,
    DetailOrderCreate,
    DetailOrderUpdate,
    AssignmentIn,
    FinalizeIn,
    CodeDisplay,
    PersonRef,
    ExamRead,
    ModalityRef,
    DetailOrderRead,
    UserRef,
    FullOrderRead,
    PaginationMeta,
    OrderListResponse,
)

# --- ServiceRequest Schemas ---
from .service_request import (
    Coding,
    CodeableConcept,
    Identifier,
    Reference,
    ServiceRequestPayload,
    MappedServiceRequest,
)

# --- Dispatch ---
from .dispatch import DispatchProjection
