"""Create document request, document file and API key tables

Revision ID: 001
Revises:
Create Date: 2025-06-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create document_requests, document_files and api_keys."""

    op.create_table(
        'document_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('request_id', sa.String(32), nullable=False),

        # Student
        sa.Column('learning_reference_number', sa.String(255), nullable=False),
        sa.Column('name_of_student', sa.String(255), nullable=False),
        sa.Column('last_schoolyear_attended', sa.String(255), nullable=False),
        sa.Column('gender', sa.String(10), nullable=False),
        sa.Column('grade', sa.String(50), nullable=False),
        sa.Column('section', sa.String(50), nullable=False),
        sa.Column('major', sa.String(255), nullable=True),
        sa.Column('adviser', sa.String(255), nullable=False),
        sa.Column('contact_number', sa.String(20), nullable=False),

        # Requestor
        sa.Column('person_requesting_name', sa.String(255), nullable=False),
        sa.Column('request_for', sa.String(20), nullable=False),
        sa.Column('signature_url', sa.String(500), nullable=False),

        # Workflow
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),

        # Constraints
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', name='uq_document_requests_request_id'),
        sa.CheckConstraint(
            "gender IN ('male', 'female', 'other')",
            name='ck_document_requests_gender'
        ),
        sa.CheckConstraint(
            "request_for IN ('SF10', 'ENROLLMENT_CERT', 'DIPLOMA', 'CAV', 'ENG. INST.', 'CERT OF GRAD', 'OTHERS')",
            name='ck_document_requests_request_for'
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'pickup', 'completed', 'rejected')",
            name='ck_document_requests_status'
        ),
    )

    op.create_index('ix_document_requests_request_id', 'document_requests', ['request_id'])
    op.create_index('ix_document_requests_status', 'document_requests', ['status'])
    op.create_index('ix_document_requests_request_for', 'document_requests', ['request_for'])

    op.create_table(
        'document_files',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('document_request_id', sa.Integer(), nullable=False),

        # File metadata
        sa.Column('file_type', sa.String(50), nullable=False),
        sa.Column('original_name', sa.String(255), nullable=False),
        sa.Column('file_name', sa.String(500), nullable=False),
        sa.Column('file_path', sa.String(1000), nullable=False),
        sa.Column('mime_type', sa.String(255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),

        # Constraints
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['document_request_id'], ['document_requests.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('file_name', name='uq_document_files_file_name'),
        sa.CheckConstraint('file_size >= 0', name='ck_document_files_file_size'),
    )

    op.create_index('ix_document_files_document_request_id', 'document_files', ['document_request_id'])
    op.create_index('ix_document_files_request_type', 'document_files', ['document_request_id', 'file_type'])

    op.create_table(
        'api_keys',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_used_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),

        # Constraints
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_index('ix_api_keys_key', 'api_keys', ['key'], unique=True)


def downgrade():
    """Drop api_keys, document_files and document_requests."""
    op.drop_index('ix_api_keys_key', table_name='api_keys')
    op.drop_table('api_keys')

    op.drop_index('ix_document_files_request_type', table_name='document_files')
    op.drop_index('ix_document_files_document_request_id', table_name='document_files')
    op.drop_table('document_files')

    op.drop_index('ix_document_requests_request_for', table_name='document_requests')
    op.drop_index('ix_document_requests_status', table_name='document_requests')
    op.drop_index('ix_document_requests_request_id', table_name='document_requests')
    op.drop_table('document_requests')
