from sqlalchemy import Column, Integer, String

from common.db.base import Base, BigIntegerType


class JobLimitEntity(Base):
    __tablename__ = "job_limits"

    id = Column(BigIntegerType, primary_key=True, autoincrement=True)
    # NULL launcher is the system-wide default row
    launcher = Column(String, nullable=True, unique=True, index=True)
    concurrent_jobs = Column(Integer, nullable=False)
