"""create_user_profiles_table

Revision ID: 6f1c2a9d4b7e
Revises:
Create Date: 2026-03-01 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "6f1c2a9d4b7e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """업그레이드 마이그레이션: user_profiles 테이블 생성"""
    op.create_table(
        "user_profiles",
        sa.Column(
            "user_id",
            sa.String(length=128),
            nullable=False,
            comment="스토어프론트 사용자 ID",
        ),
        sa.Column(
            "profile",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="UserProfile 직렬화 문서",
        ),
        sa.Column(
            "total_interactions",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="누적 상호작용 수",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="생성 일시",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="수정 일시",
        ),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    """다운그레이드 마이그레이션: user_profiles 테이블 삭제"""
    op.drop_table("user_profiles")
