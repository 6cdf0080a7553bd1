"""Initial schema: users, residents, letter workflow, audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'residents',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('nik', sa.String(16), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_residents_nik', 'residents', ['nik'], unique=True)

    op.create_table(
        'letter_types',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_letter_types_name', 'letter_types', ['name'])

    op.create_table(
        'letter_requests',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('letter_type_id', sa.String(36), nullable=False),
        sa.Column('resident_id', sa.String(36), nullable=False),
        sa.Column('operator_id', sa.String(36), nullable=False),
        sa.Column('kepala_desa_id', sa.String(36), nullable=True),
        sa.Column('rejected_by_id', sa.String(36), nullable=True),
        sa.Column('form_payload', sa.JSON(), nullable=False),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['letter_type_id'], ['letter_types.id'], ),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id'], ),
        sa.ForeignKeyConstraint(['operator_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['kepala_desa_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['rejected_by_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_letter_requests_status', 'letter_requests', ['status'])
    op.create_index('ix_letter_requests_letter_type_id', 'letter_requests', ['letter_type_id'])
    op.create_index('ix_letter_requests_resident_id', 'letter_requests', ['resident_id'])
    op.create_index('ix_letter_requests_operator_id', 'letter_requests', ['operator_id'])
    op.create_index('ix_letter_requests_kepala_desa_id', 'letter_requests', ['kepala_desa_id'])
    op.create_index('ix_letter_requests_approved_at', 'letter_requests', ['approved_at'])
    op.create_index('ix_letter_requests_created_at', 'letter_requests', ['created_at'])

    op.create_table(
        'digital_signatures',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('letter_request_id', sa.String(36), nullable=False),
        sa.Column('signature_image_ref', sa.String(500), nullable=False),
        sa.Column('document_hash', sa.String(255), nullable=False),
        sa.Column('qr_code_ref', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['letter_request_id'], ['letter_requests.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_hash'),
    )
    op.create_index(
        'ix_digital_signatures_letter_request_id', 'digital_signatures', ['letter_request_id'], unique=True
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('entity_table', sa.String(100), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('actor_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_audit_logs_id', 'audit_logs', ['id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_table', 'audit_logs', ['entity_table'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('digital_signatures')
    op.drop_table('letter_requests')
    op.drop_table('letter_types')
    op.drop_table('residents')
    op.drop_table('users')
