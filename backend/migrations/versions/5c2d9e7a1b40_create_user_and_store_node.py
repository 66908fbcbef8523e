"""create user and store_node tables

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'store_node' not in existing_tables:
        op.create_table(
            'store_node',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('path', sa.String(length=64), nullable=False),
            sa.Column('value', sa.JSON(), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_store_node_path', 'store_node', ['path'], unique=True)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'store_node' in existing_tables:
        op.drop_index('ix_store_node_path', table_name='store_node')
        op.drop_table('store_node')
    if 'user' in existing_tables:
        op.drop_index('ix_user_username', table_name='user')
        op.drop_table('user')
