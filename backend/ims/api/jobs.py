"""
Job API
- Closing a job (status closed / complete / cancelled ...) drops its
  allocations from the active-job views without touching any event.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ims.api.deps import Notifier, get_tenant_id
from ims.database import get_db
from ims.exceptions import NotFoundError
from ims.models import Job
from ims.schemas.catalog import JobIn, JobOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.get("", response_model=list[JobOut])
def list_jobs(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    rows = db.query(Job).filter(Job.tenant_id == tenant_id).order_by(Job.code).all()
    return [JobOut.model_validate(r) for r in rows]


@router.post("", response_model=JobOut)
def upsert_job(
    body: JobIn,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    """Create a job, or update it when the code already exists"""
    code = body.code.strip()
    job = db.query(Job).filter(Job.tenant_id == tenant_id, Job.code == code).first()
    fields = body.model_dump(exclude={"code"}, exclude_unset=job is not None)
    if "status" in fields:
        fields["status"] = (fields["status"] or "open").strip().lower()
    if job is None:
        job = Job(tenant_id=tenant_id, code=code, **fields)
        db.add(job)
    else:
        for key, value in fields.items():
            setattr(job, key, value)
    db.commit()
    db.refresh(job)
    logger.info(f"[{tenant_id}] job {code} saved (status={job.status})")
    notify("catalog.updated", kind="job", code=code)
    return JobOut.model_validate(job)


@router.delete("/{code}", response_model=JobOut)
def delete_job(
    code: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    notify: Notifier = Depends(),
):
    job = db.query(Job).filter(Job.tenant_id == tenant_id, Job.code == code).first()
    if job is None:
        raise NotFoundError("job not found", code=code)
    result = JobOut.model_validate(job)
    db.delete(job)
    db.commit()
    logger.info(f"[{tenant_id}] job {code} deleted")
    notify("catalog.updated", kind="job", code=code)
    return result
