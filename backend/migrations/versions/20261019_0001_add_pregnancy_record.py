"""Add pregnancy_record table

Revision ID: a7c3e91d4b20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a7c3e91d4b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'pregnancy_record',
        sa.Column('pregnancy_id', sa.Uuid(), nullable=False),
        sa.Column('patient_key', sa.String(length=255), nullable=False),
        sa.Column('outcome', sa.String(length=20), nullable=False, comment='Ongoing | Live Birth | Stillbirth | Miscarriage | Abortion | Ectopic'),
        sa.Column('lmp_date', sa.Date(), nullable=False),
        sa.Column('scan_date', sa.Date(), nullable=True),
        sa.Column('scan_edd', sa.Date(), nullable=True),
        sa.Column('corrected_edd', sa.Date(), nullable=True),
        sa.Column('delivery_mode', sa.String(length=20), nullable=False, server_default='NA'),
        sa.Column('birth_weight', sa.String(length=20), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=False, server_default='NA'),
        sa.Column('baby_status', sa.String(length=10), nullable=False, server_default='NA'),
        sa.Column('complications', sa.JSON(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('created_by', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_by', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('pregnancy_id')
    )

    op.create_index('ix_pregnancy_record_patient_key', 'pregnancy_record', ['patient_key'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_pregnancy_record_patient_key', table_name='pregnancy_record')
    op.drop_table('pregnancy_record')
