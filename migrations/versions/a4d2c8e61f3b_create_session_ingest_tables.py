"""Create session_files and session_lines tables.

Revision ID: a4d2c8e61f3b
Revises:
Create Date: 2026-10-16

Adds:
- session_files: one row per uploaded session with its processing state
- session_lines: parsed JSONL lines, unique per (file_id, line_number)
"""

revision = 'a4d2c8e61f3b'
down_revision = None
branch_labels = None
depends_on = None

import sqlalchemy as sa
from alembic import op


def upgrade() -> None:
    connection = op.get_bind()
    inspector = sa.inspect(connection)
    existing_tables = inspector.get_table_names()

    # --- session_files table ---
    if 'session_files' not in existing_tables:
        op.create_table(
            'session_files',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('project_name', sa.String(255), nullable=False, index=True),
            sa.Column('session_name', sa.String(255), nullable=False),
            sa.Column('file_name', sa.String(500), nullable=False),
            sa.Column('file_path', sa.Text(), nullable=True),
            sa.Column('file_size', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('processing_status', sa.String(20), nullable=False, server_default='pending'),
            sa.Column('processed_lines', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('processing_error', sa.Text(), nullable=True),
            sa.Column('uploaded_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint('project_name', 'session_name', name='uq_session_files_project_session'),
        )

    # --- session_lines table ---
    if 'session_lines' not in existing_tables:
        op.create_table(
            'session_lines',
            sa.Column('id', sa.String(36), primary_key=True),
            sa.Column('file_id', sa.String(36),
                      sa.ForeignKey('session_files.id', ondelete='CASCADE'),
                      nullable=False, index=True),
            sa.Column('line_number', sa.Integer(), nullable=False),
            sa.Column('content', sa.JSON(), nullable=True),
            sa.Column('raw_text', sa.Text(), nullable=False),
            sa.Column('message_type', sa.Text(), nullable=True, index=True),
            sa.Column('message_timestamp', sa.Text(), nullable=True),
            sa.Column('metadata', sa.JSON(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint('file_id', 'line_number', name='uq_session_lines_file_line'),
        )


def downgrade() -> None:
    op.drop_table('session_lines')
    op.drop_table('session_files')
