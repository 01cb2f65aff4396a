"""create_users_cars_documents

Создание таблиц пользователей, автомобилей и документов.

Revision ID: a3f1c9d27b40
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a3f1c9d27b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Создание таблиц users, cars, documents."""

    # === 1. USERS ===

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('username', sa.String(30), nullable=False),
        sa.Column('email', sa.String(50), nullable=False),
        sa.Column('password', sa.String(255), nullable=True),
        sa.Column('provider', sa.String(20), nullable=False, server_default='local'),
        sa.Column('google_id', sa.String(255), nullable=True),
        sa.Column('profile_picture', sa.String(500), nullable=True),
        sa.Column('plan', sa.String(20), nullable=False, server_default='Free'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # === 2. CARS ===

    op.create_table(
        'cars',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('make', sa.String(30), nullable=False),
        sa.Column('model', sa.String(30), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('vin', sa.String(17), nullable=True),
        sa.Column('license_plate', sa.String(10), nullable=False),
        sa.Column('image', sa.String(500), nullable=True, comment='Публичный URL фото в S3'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cars_user_id', 'cars', ['user_id'])
    op.create_index('ix_cars_created_at', 'cars', ['created_at'])

    # === 3. DOCUMENTS ===

    op.create_table(
        'documents',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('car_id', sa.String(36), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, comment='insurance | registration | tax | other'),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('file_url', sa.String(500), nullable=True, comment='Публичный URL файла в S3'),
        sa.Column('file_name', sa.String(255), nullable=True),
        sa.Column('file_type', sa.String(100), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['car_id'], ['cars.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_documents_user_id', 'documents', ['user_id'])
    op.create_index('ix_documents_car_id', 'documents', ['car_id'])
    op.create_index('ix_documents_created_at', 'documents', ['created_at'])


def downgrade() -> None:
    """Удаление таблиц."""
    op.drop_index('ix_documents_created_at', table_name='documents')
    op.drop_index('ix_documents_car_id', table_name='documents')
    op.drop_index('ix_documents_user_id', table_name='documents')
    op.drop_table('documents')

    op.drop_index('ix_cars_created_at', table_name='cars')
    op.drop_index('ix_cars_user_id', table_name='cars')
    op.drop_table('cars')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
