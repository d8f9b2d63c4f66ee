from sqlalchemy import BigInteger
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator, Integer

Base = declarative_base()


class BigIntegerType(TypeDecorator):
    """BIGINT on PostgreSQL, INTEGER elsewhere (SQLite needs INTEGER for rowid keys)."""

    impl = Integer
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(BigInteger())
        return dialect.type_descriptor(Integer())
