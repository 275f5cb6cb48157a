"""create_question_sets_and_answers

Revision ID: 5c2e8a1f0d3b
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c2e8a1f0d3b"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

set_mode = sa.Enum("quiz", "survey", name="set_mode")


def upgrade() -> None:
    op.create_table(
        "question_sets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("mode", set_mode, nullable=False, server_default="quiz"),
        sa.Column(
            "time_limit_seconds", sa.Integer(), nullable=False, server_default="60"
        ),
        sa.Column(
            "is_public", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("slug", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("slug", name="uq_question_sets_slug"),
    )
    op.create_index("ix_question_sets_id", "question_sets", ["id"])
    op.create_index("ix_question_sets_owner_id", "question_sets", ["owner_id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "question_set_id",
            sa.Integer(),
            sa.ForeignKey("question_sets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("correct_answer", sa.String(), nullable=False, server_default=""),
    )
    op.create_index("ix_questions_id", "questions", ["id"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "question_set_id",
            sa.Integer(),
            sa.ForeignKey("question_sets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(), nullable=True),
        sa.Column(
            "respondent_name", sa.String(), nullable=False, server_default="Anonymous"
        ),
        sa.Column("respondent_key", sa.String(), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("answer_key", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "question_set_id", "respondent_key", name="uq_answers_set_respondent"
        ),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    op.create_index("ix_answers_question_set_id", "answers", ["question_set_id"])
    op.create_index("ix_answers_owner_id", "answers", ["owner_id"])


def downgrade() -> None:
    op.drop_index("ix_answers_owner_id", table_name="answers")
    op.drop_index("ix_answers_question_set_id", table_name="answers")
    op.drop_index("ix_answers_id", table_name="answers")
    op.drop_table("answers")
    op.drop_index("ix_questions_id", table_name="questions")
    op.drop_table("questions")
    op.drop_index("ix_question_sets_owner_id", table_name="question_sets")
    op.drop_index("ix_question_sets_id", table_name="question_sets")
    op.drop_table("question_sets")
    set_mode.drop(op.get_bind(), checkfirst=True)
