"""match lifecycle: matches, roster, ballots, votes, honors, duels

Revision ID: 0001_match_lifecycle
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_match_lifecycle"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, nullable: bool = False):
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade():
    op.create_table(
        "league_members",
        sa.Column("league_id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("role", sa.Text(), nullable=False, server_default="MEMBER"),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("league_overall", sa.Float(), nullable=False, server_default="5.0"),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("honors_mvp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("honors_tronco", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("honors_fantasma", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("honors_prediction", sa.Integer(), nullable=False, server_default="0"),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("role in ('OWNER','ADMIN','MEMBER')", name="ck_league_member_role"),
    )
    op.create_index("ix_league_members_user", "league_members", ["user_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("league_id", sa.String(36), nullable=True),
        sa.Column("admin_id", sa.String(36), nullable=False),
        sa.Column("is_external", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("location_name", sa.Text(), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_per_player", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.Text(), nullable=False, server_default="OPEN"),
        sa.Column("team_a_score", sa.SmallInteger(), nullable=True),
        sa.Column("team_b_score", sa.SmallInteger(), nullable=True),
        sa.Column("mvp_id", sa.String(36), nullable=True),
        _ts("closed_at", nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("status in ('OPEN','ACTIVE','FINISHED','COMPLETED','CANCELLED')", name="ck_match_status"),
        sa.CheckConstraint("team_a_score IS NULL OR team_a_score >= 0", name="ck_match_team_a_score"),
        sa.CheckConstraint("team_b_score IS NULL OR team_b_score >= 0", name="ck_match_team_b_score"),
    )
    op.create_index("ix_matches_league_status_date", "matches", ["league_id", "status", "date_time"])

    op.create_table(
        "match_players",
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("team", sa.Text(), nullable=False, server_default="A"),
        sa.Column("position", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("has_confirmed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("match_rating", sa.Float(), nullable=True),
        sa.Column("match_pace", sa.Float(), nullable=True),
        sa.Column("match_defense", sa.Float(), nullable=True),
        sa.Column("match_technique", sa.Float(), nullable=True),
        sa.Column("match_physical", sa.Float(), nullable=True),
        sa.Column("match_attack", sa.Float(), nullable=True),
        sa.Column("match_trend", sa.Float(), nullable=True),
        _ts("created_at"),
        sa.CheckConstraint("team in ('A','B')", name="ck_match_player_team"),
    )
    op.create_index("ix_match_players_user_match", "match_players", ["user_id", "match_id"])

    op.create_table(
        "match_ballots",
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("voter_id", sa.String(36), primary_key=True),
        sa.Column("votes_cast", sa.SmallInteger(), nullable=False),
        _ts("created_at"),
    )

    op.create_table(
        "match_votes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("league_id", sa.String(36), nullable=True),
        sa.Column("voter_id", sa.String(36), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("overall", sa.SmallInteger(), nullable=False),
        sa.Column("pace", sa.SmallInteger(), nullable=True),
        sa.Column("defense", sa.SmallInteger(), nullable=True),
        sa.Column("technique", sa.SmallInteger(), nullable=True),
        sa.Column("physical", sa.SmallInteger(), nullable=True),
        sa.Column("attack", sa.SmallInteger(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        _ts("created_at"),
        sa.UniqueConstraint("match_id", "voter_id", "target_id", name="uq_match_votes_voter_target"),
        sa.CheckConstraint("overall between 1 and 10", name="ck_match_votes_overall"),
    )
    op.create_index("ix_match_votes_match_target", "match_votes", ["match_id", "target_id"])

    op.create_table(
        "honors",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("league_id", sa.String(36), nullable=True),
        sa.Column("honor_type", sa.Text(), nullable=False),
        _ts("created_at"),
        sa.UniqueConstraint("match_id", "user_id", "honor_type", name="uq_honors_match_user_type"),
        sa.CheckConstraint("honor_type in ('MVP','TRONCO','FANTASMA','ORACLE','FIGURE')", name="ck_honor_type"),
    )
    op.create_index("ix_honors_league_user", "honors", ["league_id", "user_id"])

    op.create_table(
        "duels",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("challenger_id", sa.String(36), nullable=False),
        sa.Column("rival_id", sa.String(36), nullable=False),
        sa.Column("winner_id", sa.String(36), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="PENDING"),
        sa.Column("rating_gap", sa.Float(), nullable=False, server_default="0"),
        _ts("created_at"),
        sa.CheckConstraint("challenger_id <> rival_id", name="ck_duel_distinct_players"),
        sa.CheckConstraint("status in ('PENDING','ACTIVE','COMPLETED','DRAW')", name="ck_duel_status"),
    )

    op.create_table(
        "match_prediction_scores",
        sa.Column("match_id", sa.String(36), sa.ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        _ts("updated_at"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("actor_user_id", sa.String(36), nullable=True),
        sa.Column("entity_type", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.Text(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_actor_created", "audit_log", ["actor_user_id", "created_at"])


def downgrade():
    op.drop_index("ix_audit_actor_created", table_name="audit_log")
    op.drop_index("ix_audit_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("match_prediction_scores")
    op.drop_table("duels")
    op.drop_index("ix_honors_league_user", table_name="honors")
    op.drop_table("honors")
    op.drop_index("ix_match_votes_match_target", table_name="match_votes")
    op.drop_table("match_votes")
    op.drop_table("match_ballots")
    op.drop_index("ix_match_players_user_match", table_name="match_players")
    op.drop_table("match_players")
    op.drop_index("ix_matches_league_status_date", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_league_members_user", table_name="league_members")
    op.drop_table("league_members")
