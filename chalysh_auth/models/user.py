"""User 모델. Telegram·Google 계정을 하나의 로컬 유저로 매핑."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from chalysh_auth.models.refresh_token import RefreshToken

from sqlalchemy import JSON, BigInteger, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chalysh_auth.models.base import Base


class User(Base):
    """유저. provider별 고유 키(telegram_id, google_id) 중 최소 하나 보유. 비밀번호 없음."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    telegram_id: Mapped[int | None] = mapped_column(BigInteger, unique=True, nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)

    # provider 페이로드 미러. 로그인마다 덮어씀.
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)
    first_name: Mapped[str] = mapped_column(String(256), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    username: Mapped[str | None] = mapped_column(String(256), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # 상위 애플리케이션 소유. 인증 코어는 읽기/쓰기 안 함.
    additional_fields: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=dict,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
