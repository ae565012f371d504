"""Initial schema: eras, events, persons, their child rows and cards

Revision ID: initial
Revises: 
Create Date: 2025-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create era table
    op.create_table(
        'era',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('start_year', sa.Integer(), nullable=True),
        sa.Column('end_year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Create event table
    op.create_table(
        'event',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('era_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('summary', sa.String(), nullable=True),
        sa.Column('place', sa.String(), nullable=True),
        sa.Column('start_year', sa.Integer(), nullable=True),
        sa.Column('end_year', sa.Integer(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['era_id'], ['era.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_event_era_id'), 'event', ['era_id'], unique=False)

    # Create person table
    op.create_table(
        'person',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('era_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('bio', sa.String(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('born', sa.Integer(), nullable=True),
        sa.Column('died', sa.Integer(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['era_id'], ['era.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_person_era_id'), 'person', ['era_id'], unique=False)

    # Create subevent table
    op.create_table(
        'subevent',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False, server_default=''),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['event.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subevent_event_id'), 'subevent', ['event_id'], unique=False)

    # Create person_achievement table
    op.create_table(
        'person_achievement',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False, server_default=''),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['person_id'], ['person.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_person_achievement_person_id'), 'person_achievement', ['person_id'], unique=False)

    # Create card table
    op.create_table(
        'card',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question', sa.String(), nullable=False),
        sa.Column('answer', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='new'),
        sa.Column('due_at', sa.DateTime(), nullable=True),
        sa.Column('person_id', sa.Integer(), nullable=True),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['person_id'], ['person.id'], ),
        sa.ForeignKeyConstraint(['event_id'], ['event.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_card_due_at'), 'card', ['due_at'], unique=False)
    op.create_index(op.f('ix_card_person_id'), 'card', ['person_id'], unique=False)
    op.create_index(op.f('ix_card_event_id'), 'card', ['event_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_card_event_id'), table_name='card')
    op.drop_index(op.f('ix_card_person_id'), table_name='card')
    op.drop_index(op.f('ix_card_due_at'), table_name='card')
    op.drop_table('card')
    op.drop_index(op.f('ix_person_achievement_person_id'), table_name='person_achievement')
    op.drop_table('person_achievement')
    op.drop_index(op.f('ix_subevent_event_id'), table_name='subevent')
    op.drop_table('subevent')
    op.drop_index(op.f('ix_person_era_id'), table_name='person')
    op.drop_table('person')
    op.drop_index(op.f('ix_event_era_id'), table_name='event')
    op.drop_table('event')
    op.drop_table('era')
