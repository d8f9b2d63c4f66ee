from sqlalchemy import Column, ForeignKey, Integer, String

from common.db.base import Base


class AnalysisEntity(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)
    job_name = Column(String, nullable=True)
    status = Column(String, nullable=False)


class AnalysisStepEntity(Base):
    __tablename__ = "job_steps"

    job_id = Column(String(36), ForeignKey("jobs.id"), primary_key=True)
    step_number = Column(Integer, primary_key=True, default=1)
    external_id = Column(String, nullable=True, index=True)
