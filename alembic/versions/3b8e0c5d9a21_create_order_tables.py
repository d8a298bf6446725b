"""create_order_tables

Revision ID: 3b8e0c5d9a21
Revises:
Create Date: 2024-06-01 08:00:00.000000

"""
from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b8e0c5d9a21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GENDER = sa.Enum('MALE', 'FEMALE', name='gender_enum', native_enum=False)
PRIORITY = sa.Enum('ROUTINE', 'URGENT', 'STAT', name='order_priority_enum', native_enum=False)
STATUS = sa.Enum('IN_REQUEST', 'IN_QUEUE', 'IN_PROGRESS', 'FINAL', name='detail_order_status_enum', native_enum=False)
ORIGIN = sa.Enum('INTERNAL', 'EXTERNAL', name='order_origin_enum', native_enum=False)


def _base_columns() -> List[sa.Column]:
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _base_indexes(table: str) -> None:
    for column in ('id', 'created_at', 'updated_at'):
        op.create_index(f'ix_{table}_{column}', table, [column], unique=False)


def upgrade() -> None:
    op.create_table(
        'modalities',
        *_base_columns(),
        sa.Column('code', sa.String(length=16), nullable=False, comment='Short DICOM modality code, e.g. CT, MR, DX.'),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('aet', sa.JSON(), nullable=False, comment='AE titles served by this modality.'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_modalities')),
    )
    _base_indexes('modalities')
    op.create_index('ix_modalities_code', 'modalities', ['code'], unique=True)
    op.create_index('ix_modalities_is_active', 'modalities', ['is_active'], unique=False)

    op.create_table(
        'procedures',
        *_base_columns(),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('loinc_code', sa.String(length=32), nullable=False),
        sa.Column('loinc_display', sa.String(length=255), nullable=False),
        sa.Column('loinc_system', sa.String(length=255), nullable=False),
        sa.Column('modality_id', sa.Integer(), nullable=False),
        sa.Column('require_fasting', sa.Boolean(), nullable=False),
        sa.Column('require_pregnancy_check', sa.Boolean(), nullable=False),
        sa.Column('require_use_contrast', sa.Boolean(), nullable=False),
        sa.Column('contrast_name', sa.String(length=255), nullable=True),
        sa.Column('contrast_kfa_code', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['modality_id'], ['modalities.id'], name=op.f('fk_procedures_modality_id_modalities')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_procedures')),
    )
    _base_indexes('procedures')
    op.create_index('ix_procedures_code', 'procedures', ['code'], unique=True)
    for column in ('loinc_code', 'modality_id', 'is_active'):
        op.create_index(f'ix_procedures_{column}', 'procedures', [column], unique=False)

    op.create_table(
        'patients',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('mrn', sa.String(length=64), nullable=False, comment='Medical Record Number'),
        sa.Column('ihs_number', sa.String(length=64), nullable=True, comment='Health-exchange patient id'),
        sa.Column('gender', GENDER, nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_patients')),
    )
    _base_indexes('patients')
    op.create_index('ix_patients_mrn', 'patients', ['mrn'], unique=True)
    op.create_index('ix_patients_name', 'patients', ['name'], unique=False)
    op.create_index('ix_patients_ihs_number', 'patients', ['ihs_number'], unique=False)

    op.create_table(
        'practitioners',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ihs_number', sa.String(length=64), nullable=True, comment='Health-exchange practitioner id'),
        sa.Column('profession', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_practitioners')),
    )
    _base_indexes('practitioners')
    op.create_index('ix_practitioners_name', 'practitioners', ['name'], unique=False)
    op.create_index('ix_practitioners_ihs_number', 'practitioners', ['ihs_number'], unique=False)

    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    _base_indexes('users')
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'orders',
        *_base_columns(),
        sa.Column('patient_id', sa.Integer(), nullable=True),
        sa.Column('practitioner_id', sa.Integer(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('encounter_ss_id', sa.String(length=128), nullable=True, comment='Health-exchange Encounter id.'),
        sa.Column('service_id', sa.String(length=128), nullable=True, comment="External service ('pelayanan') id."),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('patient_name', sa.String(length=255), nullable=True),
        sa.Column('patient_mrn', sa.String(length=64), nullable=True),
        sa.Column('patient_birth_date', sa.Date(), nullable=True),
        sa.Column('patient_age', sa.Integer(), nullable=True),
        sa.Column('patient_gender', GENDER, nullable=True),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], name=op.f('fk_orders_patient_id_patients')),
        sa.ForeignKeyConstraint(['practitioner_id'], ['practitioners.id'], name=op.f('fk_orders_practitioner_id_practitioners')),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], name=op.f('fk_orders_created_by_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_orders')),
    )
    _base_indexes('orders')
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    for column in ('patient_id', 'practitioner_id', 'created_by_id', 'service_id', 'patient_name', 'patient_mrn'):
        op.create_index(f'ix_orders_{column}', 'orders', [column], unique=False)

    op.create_table(
        'detail_orders',
        *_base_columns(),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('procedure_id', sa.Integer(), nullable=True),
        sa.Column('modality_id', sa.Integer(), nullable=True),
        sa.Column('requester_id', sa.Integer(), nullable=True),
        sa.Column('requester_ss_id', sa.String(length=128), nullable=True),
        sa.Column('requester_display', sa.String(length=255), nullable=True),
        sa.Column('performer_id', sa.Integer(), nullable=True),
        sa.Column('performer_ss_id', sa.String(length=128), nullable=True),
        sa.Column('performer_display', sa.String(length=255), nullable=True),
        sa.Column('accession_number', sa.String(length=64), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('external_accession_number', sa.String(length=64), nullable=True, comment='ACSN carried by an inbound ServiceRequest.'),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('schedule_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('occurrence_datetime', sa.String(length=64), nullable=True, comment='occurrenceDateTime as received.'),
        sa.Column('order_priority', PRIORITY, server_default='ROUTINE', nullable=False),
        sa.Column('order_status', STATUS, server_default='IN_REQUEST', nullable=False),
        sa.Column('order_from', ORIGIN, server_default='INTERNAL', nullable=False),
        sa.Column('status_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ae_title', sa.String(length=16), nullable=True),
        sa.Column('loinc_code', sa.String(length=32), nullable=True),
        sa.Column('loinc_display', sa.String(length=255), nullable=True),
        sa.Column('kptl_code', sa.String(length=64), nullable=True),
        sa.Column('kptl_display', sa.String(length=255), nullable=True),
        sa.Column('code_text', sa.String(length=255), nullable=True),
        sa.Column('contrast_code', sa.String(length=64), nullable=True),
        sa.Column('contrast_display', sa.String(length=255), nullable=True),
        sa.Column('diagnosis_code', sa.String(length=32), nullable=True),
        sa.Column('diagnosis_display', sa.String(length=255), nullable=True),
        sa.Column('request_status', sa.String(length=32), nullable=True, comment='ServiceRequest.status'),
        sa.Column('request_intent', sa.String(length=32), nullable=True, comment='ServiceRequest.intent'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('require_fasting', sa.Boolean(), nullable=False),
        sa.Column('require_pregnancy_check', sa.Boolean(), nullable=False),
        sa.Column('require_use_contrast', sa.Boolean(), nullable=False),
        sa.Column('service_request_id', sa.String(length=128), nullable=True),
        sa.Column('observation_id', sa.String(length=128), nullable=True),
        sa.Column('procedure_ss_id', sa.String(length=128), nullable=True),
        sa.Column('allergy_intolerance_id', sa.String(length=128), nullable=True),
        sa.Column('service_request_json', sa.JSON(), nullable=True, comment='Raw inbound ServiceRequest, kept for replay.'),
        sa.Column('observation_notes', sa.Text(), nullable=True),
        sa.Column('diagnostic_conclusion', sa.Text(), nullable=True),
        sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name=op.f('fk_detail_orders_order_id_orders')),
        sa.ForeignKeyConstraint(['procedure_id'], ['procedures.id'], name=op.f('fk_detail_orders_procedure_id_procedures')),
        sa.ForeignKeyConstraint(['modality_id'], ['modalities.id'], name=op.f('fk_detail_orders_modality_id_modalities')),
        sa.ForeignKeyConstraint(['requester_id'], ['practitioners.id'], name=op.f('fk_detail_orders_requester_id_practitioners')),
        sa.ForeignKeyConstraint(['performer_id'], ['practitioners.id'], name=op.f('fk_detail_orders_performer_id_practitioners')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_detail_orders')),
    )
    _base_indexes('detail_orders')
    op.create_index('ix_detail_orders_accession_number', 'detail_orders', ['accession_number'], unique=True)
    for column in (
        'order_id', 'procedure_id', 'modality_id', 'requester_id', 'performer_id',
        'order_number', 'order_status', 'schedule_date', 'service_request_id',
    ):
        op.create_index(f'ix_detail_orders_{column}', 'detail_orders', [column], unique=False)


def downgrade() -> None:
    # Children first for the foreign keys
    for table in ('detail_orders', 'orders', 'users', 'practitioners', 'patients', 'procedures', 'modalities'):
        op.drop_table(table)
