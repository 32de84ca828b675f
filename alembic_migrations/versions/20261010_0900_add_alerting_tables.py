"""Add monitoring capability catalog and alerts tables

Revision ID: 4c1e9a7b2f30
Revises:
Create Date: 2026-10-10 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '4c1e9a7b2f30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Capability catalog (seeded by scripts/seed_capabilities.py)
    op.create_table(
        'monitoring_capabilities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('capability_key', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('metric', sa.String(255), nullable=False),
        sa.Column('parameters', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=False),
        sa.Column('alert_template', sa.Text, nullable=False),
        sa.Column('default_threshold', sa.Float, nullable=False),
        sa.Column('default_window', sa.String(20), nullable=False),
        sa.Column('suggested_severity', sa.String(20), nullable=False, server_default='warning'),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_monitoring_capabilities_capability_key', 'monitoring_capabilities', ['capability_key'], unique=True)
    op.create_index('ix_monitoring_capabilities_category', 'monitoring_capabilities', ['category'])

    # Alerts
    op.create_table(
        'alerts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('organization_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column(
            'capability_id', sa.Uuid(),
            sa.ForeignKey('monitoring_capabilities.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column('machine', sa.String(255), nullable=False),
        sa.Column('threshold', sa.Float, nullable=False),
        sa.Column('window', sa.String(20), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False, server_default='warning'),
        sa.Column('promql_query', sa.Text, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='configured'),
        sa.Column('forced', sa.Boolean, nullable=False, server_default=sa.text('false')),
        sa.Column('created_by', sa.Uuid()),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_alerts_organization_id', 'alerts', ['organization_id'])
    op.create_index('ix_alerts_org_status', 'alerts', ['organization_id', 'status'])

    # One unforced alert per (organization, capability, machine); forced
    # duplicates are exempt
    op.create_index(
        'uq_alerts_org_capability_machine_unforced',
        'alerts',
        ['organization_id', 'capability_id', 'machine'],
        unique=True,
        postgresql_where=sa.text('forced = false'),
        sqlite_where=sa.text('forced = 0'),
    )


def downgrade() -> None:
    op.drop_index('uq_alerts_org_capability_machine_unforced', table_name='alerts')
    op.drop_index('ix_alerts_org_status', table_name='alerts')
    op.drop_index('ix_alerts_organization_id', table_name='alerts')
    op.drop_table('alerts')

    op.drop_index('ix_monitoring_capabilities_category', table_name='monitoring_capabilities')
    op.drop_index('ix_monitoring_capabilities_capability_key', table_name='monitoring_capabilities')
    op.drop_table('monitoring_capabilities')
