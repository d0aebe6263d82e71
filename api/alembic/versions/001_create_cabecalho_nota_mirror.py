"""001_create_cabecalho_nota_mirror

Revision ID: 001
Revises:
Create Date: 2026-10-16 09:12:41.517233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('ad_contratos'):
        op.create_table('ad_contratos',
        sa.Column('id_empresa', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('empresa', sa.String(length=255), nullable=False),
        sa.Column('ativo', sa.String(length=1), nullable=False, server_default='S'),
        sa.Column('is_sandbox', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('client_id', sa.String(length=255), nullable=True),
        sa.Column('client_secret', sa.String(length=255), nullable=True),
        sa.Column('x_token', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id_empresa')
        )
        op.create_index(op.f('ix_ad_contratos_empresa'), 'ad_contratos', ['empresa'], unique=False)

    if not inspector.has_table('as_cabecalho_nota'):
        op.create_table('as_cabecalho_nota',
        sa.Column('id_sistema', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('nunota', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('codtipoper', sa.Integer(), nullable=True),
        sa.Column('codtipvenda', sa.Integer(), nullable=True),
        sa.Column('codparc', sa.Integer(), nullable=True),
        sa.Column('codvend', sa.Integer(), nullable=True),
        sa.Column('vlrnota', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('dtneg', sa.Date(), nullable=True),
        sa.Column('tipmov', sa.String(length=1), nullable=True),
        sa.Column('sankhya_atual', sa.String(length=1), nullable=False, server_default='S'),
        sa.Column('dt_ult_carga', sa.DateTime(timezone=True), nullable=True),
        sa.Column('dt_criacao', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id_sistema', 'nunota')
        )
        op.create_index(op.f('ix_as_cabecalho_nota_sankhya_atual'), 'as_cabecalho_nota', ['sankhya_atual'], unique=False)

    if not inspector.has_table('as_sync_logs'):
        op.create_table('as_sync_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('id_sistema', sa.Integer(), nullable=False),
        sa.Column('empresa', sa.String(length=255), nullable=True),
        sa.Column('tabela', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_registros', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('registros_inseridos', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('registros_atualizados', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('registros_deletados', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duracao_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('mensagem_erro', sa.Text(), nullable=True),
        sa.Column('data_inicio', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data_fim', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_as_sync_logs_id'), 'as_sync_logs', ['id'], unique=False)
        op.create_index(op.f('ix_as_sync_logs_id_sistema'), 'as_sync_logs', ['id_sistema'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('as_sync_logs', 'as_cabecalho_nota', 'ad_contratos'):
        if inspector.has_table(table):
            op.drop_table(table)
