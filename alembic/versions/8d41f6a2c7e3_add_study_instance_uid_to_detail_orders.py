"""add_study_instance_uid_to_detail_orders

Revision ID: 8d41f6a2c7e3
Revises: 3b8e0c5d9a21
Create Date: 2024-06-20 09:12:44.310552

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41f6a2c7e3'
down_revision: Union[str, None] = '3b8e0c5d9a21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('detail_orders', schema=None) as batch_op:
        batch_op.add_column(sa.Column(
            'study_instance_uid', sa.String(length=64), nullable=True,
            comment='Minted when the line is first queued for the worklist.',
        ))
        batch_op.create_index('ix_detail_orders_study_instance_uid', ['study_instance_uid'], unique=True)


def downgrade() -> None:
    with op.batch_alter_table('detail_orders', schema=None) as batch_op:
        batch_op.drop_index('ix_detail_orders_study_instance_uid')
        batch_op.drop_column('study_instance_uid')
