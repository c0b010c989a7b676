#
# Alembic migration script
#
"""
Revision ID: 3c9e51d7a2b4
Revises:
Create Date: 2025-09-02 18:40:27.511306

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9e51d7a2b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ### Create tables ###
    op.create_table(
        'videos',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False, server_default=''),
        sa.Column('length_min', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('level', sa.String(), nullable=False, server_default=''),
        sa.Column('focuses', sa.JSON(), nullable=False),
        sa.Column('intents', sa.JSON(), nullable=False),
        sa.Column('vibe', sa.JSON(), nullable=False),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('contraindications', sa.JSON(), nullable=False),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('poster', sa.String(), nullable=True),
        sa.Column('stream', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('transcript_txt', sa.String(), nullable=True),
        sa.Column('transcript_vtt', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_videos_id', 'videos', ['id'], unique=False)
    op.create_index('ix_videos_position', 'videos', ['position'], unique=False)

    op.create_table(
        'transcripts',
        sa.Column('video_id', sa.String(), sa.ForeignKey('videos.id'), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('fetched_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('query', sa.Text(), nullable=False),
        sa.Column('recommended_id', sa.String(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_check_ins_id', 'check_ins', ['id'], unique=False)
    op.create_index('ix_check_ins_created_at', 'check_ins', ['created_at'], unique=False)


def downgrade() -> None:
    # ### Drop tables in reverse order due to FKs ###
    op.drop_index('ix_check_ins_created_at', table_name='check_ins')
    op.drop_index('ix_check_ins_id', table_name='check_ins')
    op.drop_table('check_ins')
    op.drop_table('transcripts')
    op.drop_index('ix_videos_position', table_name='videos')
    op.drop_index('ix_videos_id', table_name='videos')
    op.drop_table('videos')
