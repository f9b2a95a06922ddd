"""Application record store: lookups, listings, stats and apply."""
from typing import List, Optional

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import ConflictError, NotFoundError, NotFoundOrUnauthorizedError, ValidationError
from jobboard.models.application import APPLICATION_STATUSES, JobApplication
from jobboard.models.candidate import Candidate
from jobboard.models.job import Job
from jobboard.utils.dates import utcnow
from jobboard.utils.logger import get_logger

logger = get_logger("applications")

_url_adapter = TypeAdapter(AnyHttpUrl)


def validate_resume_url(url: str) -> str:
    try:
        _url_adapter.validate_python(url)
    except PydanticValidationError:
        raise ValidationError("Invalid resume URL format")
    return url


async def get_application(db: AsyncSession, application_id: int) -> Optional[JobApplication]:
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.id == application_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_company_application(
    db: AsyncSession, company_id: int, application_id: int
) -> Optional[JobApplication]:
    """None when the application is missing or belongs to another company."""
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.id == application_id, JobApplication.company_id == company_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_company_applications(db: AsyncSession, company_id: int) -> List[JobApplication]:
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.company_id == company_id)
        .order_by(JobApplication.application_date.desc(), JobApplication.id.desc())
    )
    return list(result.scalars().all())


async def list_candidate_applications(db: AsyncSession, candidate_id: str) -> List[JobApplication]:
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.candidate_id == candidate_id)
        .order_by(JobApplication.application_date.desc(), JobApplication.id.desc())
    )
    return list(result.scalars().all())


async def _get_company_job(db: AsyncSession, company_id: int, job_id: int) -> Job:
    result = await db.execute(
        select(Job).where(Job.id == job_id, Job.company_id == company_id)
    )
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundOrUnauthorizedError(
            "Job not found or you are not authorized to view these applications"
        )
    return job


async def list_job_applications(db: AsyncSession, company_id: int, job_id: int) -> List[JobApplication]:
    await _get_company_job(db, company_id, job_id)
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.job_id == job_id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
    )
    return list(result.scalars().all())


async def job_application_stats(db: AsyncSession, company_id: int, job_id: int) -> dict:
    """Per-status counts (zero-filled), total and average recruiter rating."""
    await _get_company_job(db, company_id, job_id)

    result = await db.execute(
        select(JobApplication.status, func.count(JobApplication.id))
        .where(JobApplication.job_id == job_id)
        .group_by(JobApplication.status)
    )
    stats = {status: 0 for status in APPLICATION_STATUSES}
    total = 0
    for status, count in result.all():
        total += count
        if status in stats:
            stats[status] = count

    avg_rating = await db.scalar(
        select(func.avg(JobApplication.recruiter_rating))
        .where(JobApplication.job_id == job_id, JobApplication.recruiter_rating.is_not(None))
    )
    return {"total": total, **stats, "averageRating": float(avg_rating) if avg_rating is not None else 0}


async def apply_for_job(
    db: AsyncSession,
    candidate_id: str,
    job_id: int,
    cover_letter: Optional[str] = None,
    expected_salary: Optional[int] = None,
) -> JobApplication:
    existing = await db.scalar(
        select(JobApplication.id).where(
            JobApplication.candidate_id == candidate_id, JobApplication.job_id == job_id
        )
    )
    if existing is not None:
        raise ConflictError("Already Applied")

    job = await db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job Not Found")

    candidate = await db.get(Candidate, candidate_id)
    if candidate is None or not candidate.resume:
        raise ValidationError("Resume is required to apply for jobs")
    validate_resume_url(candidate.resume)

    now = utcnow()
    application = JobApplication(
        candidate_id=candidate_id,
        job_id=job.id,
        company_id=job.company_id,
        resume=candidate.resume,  # snapshot, later resume changes do not apply
        cover_letter=cover_letter,
        expected_salary=expected_salary,
        status='pending',
        application_date=now,
        last_status_update=now,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent duplicate apply hit the unique constraint
        await db.rollback()
        raise ConflictError("Already Applied")

    logger.info(
        f"Candidate {candidate_id} applied to job {job_id}",
        extra={"application_id": application.id, "principal": f"candidate:{candidate_id}"},
    )
    return await get_application(db, application.id)
