"""
jobs table - projects that stock is reserved or checked out against
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from ims.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    code = Column(String(64), nullable=False)
    name = Column(String(200))
    status = Column(String(40), default="open", nullable=False)
    start_date = Column(String(40))
    end_date = Column(String(40))
    schedule_date = Column(String(40))
    location = Column(String(200))
    notes = Column(String(500))

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_job_tenant_code"),
    )
