"""Create goal graph tables

Revision ID: 0001_goal_graph
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_goal_graph'
down_revision = None
branch_labels = None
depends_on = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Create goals, goal_links and goal_check_ins."""
    op.create_table(
        'goals',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('goal_type', sa.String(40), nullable=False),
        sa.Column('owner_type', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.String(36), nullable=False),
        sa.Column('creator_id', sa.String(36), nullable=False),
        sa.Column('privacy_level', sa.String(40), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('earliest_target_date', sa.Date(), nullable=True),
        sa.Column('most_likely_target_date', sa.Date(), nullable=True),
        sa.Column('latest_target_date', sa.Date(), nullable=True),
        sa.Column('initial_confidence', sa.String(20), nullable=False, server_default='stretch'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_goals_organization_id', 'goals', ['organization_id'])
    op.create_index('ix_goals_owner_id', 'goals', ['owner_id'])
    op.create_index('ix_goals_creator_id', 'goals', ['creator_id'])

    op.create_table(
        'goal_links',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('parent_goal_id', sa.String(36), nullable=False),
        sa.Column('child_goal_id', sa.String(36), nullable=False),
        sa.Column('metadata', JSON_TYPE, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['parent_goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['child_goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('parent_goal_id', 'child_goal_id', name='uq_goal_links_parent_child'),
        sa.CheckConstraint('parent_goal_id <> child_goal_id', name='ck_goal_links_not_self'),
    )
    op.create_index('ix_goal_links_parent_goal_id', 'goal_links', ['parent_goal_id'])
    op.create_index('ix_goal_links_child_goal_id', 'goal_links', ['child_goal_id'])

    op.create_table(
        'goal_check_ins',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('goal_id', sa.String(36), nullable=False),
        sa.Column('check_in_week_start', sa.Date(), nullable=False),
        sa.Column('confidence_percentage', sa.Integer(), nullable=False),
        sa.Column('confidence_reason', sa.Text(), nullable=True),
        sa.Column('reporter_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('goal_id', 'check_in_week_start', name='uq_goal_check_ins_goal_week'),
        sa.CheckConstraint(
            'confidence_percentage >= 0 AND confidence_percentage <= 100',
            name='ck_goal_check_ins_confidence_range',
        ),
    )
    op.create_index('ix_goal_check_ins_goal_id', 'goal_check_ins', ['goal_id'])


def downgrade() -> None:
    """Drop goal graph tables."""
    op.drop_index('ix_goal_check_ins_goal_id', table_name='goal_check_ins')
    op.drop_table('goal_check_ins')
    op.drop_index('ix_goal_links_child_goal_id', table_name='goal_links')
    op.drop_index('ix_goal_links_parent_goal_id', table_name='goal_links')
    op.drop_table('goal_links')
    op.drop_index('ix_goals_creator_id', table_name='goals')
    op.drop_index('ix_goals_owner_id', table_name='goals')
    op.drop_index('ix_goals_organization_id', table_name='goals')
    op.drop_table('goals')
