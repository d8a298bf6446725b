# ris/db/models/order.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Date, DateTime, Integer, Boolean, JSON, ForeignKey, Enum as DBEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from ris.db.base import Base
from ris.schemas.enums import DetailOrderStatus, OrderPriority, OrderOrigin, Gender

if TYPE_CHECKING:
    from .patient import Patient
    from .practitioner import Practitioner
    from .procedure import Procedure
    from .modality import Modality
    from .user import User


PATIENT_SNAPSHOT_FIELDS = (
    "patient_name",
    "patient_mrn",
    "patient_birth_date",
    "patient_age",
    "patient_gender",
)


class Order(Base):
    """
    Encounter-level request. Owns one or more DetailOrder lines.
    The patient snapshot is captured at creation and never rewritten, so the
    order stays auditable when the patient master record changes.
    """
    __tablename__ = "orders"  # type: ignore

    patient_id: Mapped[Optional[int]] = mapped_column(ForeignKey("patients.id"), index=True, nullable=True)
    practitioner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("practitioners.id"), index=True, nullable=True)
    created_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), index=True, nullable=True)
    encounter_ss_id: Mapped[Optional[str]] = mapped_column(String(128), comment="Health-exchange Encounter id.")
    service_id: Mapped[Optional[str]] = mapped_column(String(128), index=True, comment="External service ('pelayanan') id.")
    order_number: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)

    # --- Patient snapshot ---
    patient_name: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    patient_mrn: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    patient_birth_date: Mapped[Optional[date]] = mapped_column(Date)
    patient_age: Mapped[Optional[int]] = mapped_column(Integer)
    patient_gender: Mapped[Optional[Gender]] = mapped_column(DBEnum(Gender, name="gender_enum", native_enum=False))

    # --- Relationships ---
    patient: Mapped[Optional["Patient"]] = relationship("Patient")
    practitioner: Mapped[Optional["Practitioner"]] = relationship("Practitioner")
    created_by: Mapped[Optional["User"]] = relationship("User")
    details: Mapped[List["DetailOrder"]] = relationship(
        "DetailOrder",
        back_populates="order",
        order_by="DetailOrder.id",
    )

    @validates(*PATIENT_SNAPSHOT_FIELDS)
    def _freeze_patient_snapshot(self, key: str, value: Any) -> Any:
        current = getattr(self, key, None)
        if current is not None and value != current:
            raise ValueError(f"Patient snapshot field '{key}' is immutable once set")
        return value

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_number='{self.order_number}')>"


class DetailOrder(Base):
    """One requested procedure within an Order."""
    __tablename__ = "detail_orders"  # type: ignore

    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True, nullable=False)
    procedure_id: Mapped[Optional[int]] = mapped_column(ForeignKey("procedures.id"), index=True, nullable=True)
    modality_id: Mapped[Optional[int]] = mapped_column(ForeignKey("modalities.id"), index=True, nullable=True)

    # --- People ---
    requester_id: Mapped[Optional[int]] = mapped_column(ForeignKey("practitioners.id"), index=True, nullable=True)
    requester_ss_id: Mapped[Optional[str]] = mapped_column(String(128))
    requester_display: Mapped[Optional[str]] = mapped_column(String(255))
    performer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("practitioners.id"), index=True, nullable=True)
    performer_ss_id: Mapped[Optional[str]] = mapped_column(String(128))
    performer_display: Mapped[Optional[str]] = mapped_column(String(255))

    # --- Identifiers ---
    accession_number: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    order_number: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    external_accession_number: Mapped[Optional[str]] = mapped_column(String(64), comment="ACSN carried by an inbound ServiceRequest.")

    # --- Scheduling ---
    order_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    schedule_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    occurrence_datetime: Mapped[Optional[str]] = mapped_column(String(64), comment="occurrenceDateTime as received.")
    order_priority: Mapped[OrderPriority] = mapped_column(
        DBEnum(OrderPriority, name="order_priority_enum", native_enum=False),
        nullable=False, default=OrderPriority.ROUTINE, server_default=OrderPriority.ROUTINE.value,
    )
    order_status: Mapped[DetailOrderStatus] = mapped_column(
        DBEnum(DetailOrderStatus, name="detail_order_status_enum", native_enum=False),
        nullable=False,
        default=DetailOrderStatus.IN_REQUEST,
        server_default=DetailOrderStatus.IN_REQUEST.value,
        index=True,
    )
    order_from: Mapped[OrderOrigin] = mapped_column(
        DBEnum(OrderOrigin, name="order_origin_enum", native_enum=False),
        nullable=False, default=OrderOrigin.INTERNAL, server_default=OrderOrigin.INTERNAL.value,
    )
    status_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # --- Worklist routing ---
    ae_title: Mapped[Optional[str]] = mapped_column(String(16))
    study_instance_uid: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, index=True, comment="Minted when the line is first queued for the worklist."
    )

    # --- Coding ---
    loinc_code: Mapped[Optional[str]] = mapped_column(String(32))
    loinc_display: Mapped[Optional[str]] = mapped_column(String(255))
    kptl_code: Mapped[Optional[str]] = mapped_column(String(64))
    kptl_display: Mapped[Optional[str]] = mapped_column(String(255))
    code_text: Mapped[Optional[str]] = mapped_column(String(255))
    contrast_code: Mapped[Optional[str]] = mapped_column(String(64))
    contrast_display: Mapped[Optional[str]] = mapped_column(String(255))
    diagnosis_code: Mapped[Optional[str]] = mapped_column(String(32))
    diagnosis_display: Mapped[Optional[str]] = mapped_column(String(255))
    request_status: Mapped[Optional[str]] = mapped_column(String(32), comment="ServiceRequest.status")
    request_intent: Mapped[Optional[str]] = mapped_column(String(32), comment="ServiceRequest.intent")
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # --- Preparation flags, copied from the procedure at creation ---
    require_fasting: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    require_pregnancy_check: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    require_use_contrast: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # --- Health-exchange resource ids ---
    service_request_id: Mapped[Optional[str]] = mapped_column(String(128), index=True)
    observation_id: Mapped[Optional[str]] = mapped_column(String(128))
    procedure_ss_id: Mapped[Optional[str]] = mapped_column(String(128))
    allergy_intolerance_id: Mapped[Optional[str]] = mapped_column(String(128))
    service_request_json: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, comment="Raw inbound ServiceRequest, kept for replay.")

    # --- Diagnostic result ---
    observation_notes: Mapped[Optional[str]] = mapped_column(Text)
    diagnostic_conclusion: Mapped[Optional[str]] = mapped_column(Text)
    finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # --- Relationships ---
    order: Mapped["Order"] = relationship("Order", back_populates="details")
    procedure: Mapped[Optional["Procedure"]] = relationship("Procedure")
    modality: Mapped[Optional["Modality"]] = relationship("Modality")
    requester: Mapped[Optional["Practitioner"]] = relationship("Practitioner", foreign_keys=[requester_id])
    performer: Mapped[Optional["Practitioner"]] = relationship("Practitioner", foreign_keys=[performer_id])

    def __repr__(self) -> str:
        return f"<DetailOrder(id={self.id}, accn='{self.accession_number}', status='{self.order_status.value}')>"
