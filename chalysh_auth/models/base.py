"""SQLAlchemy Declarative Base. 제약 이름 규칙 고정(마이그레이션과 일치)."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """공통 베이스 클래스."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
