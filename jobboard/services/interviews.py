"""Interview record store."""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.application import JobApplication
from jobboard.models.interview import Interview, InterviewInterviewer
from jobboard.utils.dates import to_naive_utc, utcnow


async def get_interview(db: AsyncSession, interview_id: int) -> Optional[Interview]:
    result = await db.execute(
        select(Interview)
        .where(Interview.id == interview_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_company_interviews(
    db: AsyncSession,
    company_id: int,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[Interview]:
    """Interviews the company takes part in, earliest first.

    The date window only applies when both bounds are given.
    """
    query = (
        select(Interview)
        .join(InterviewInterviewer, InterviewInterviewer.interview_id == Interview.id)
        .where(InterviewInterviewer.company_id == company_id)
    )
    if status:
        query = query.where(Interview.status == status)
    if start_date and end_date:
        query = query.where(
            Interview.scheduled_time >= to_naive_utc(start_date),
            Interview.scheduled_time <= to_naive_utc(end_date),
        )
    result = await db.execute(query.order_by(Interview.scheduled_time.asc()))
    return list(result.scalars().unique().all())


async def list_candidate_upcoming(
    db: AsyncSession, candidate_id: str, now: datetime = None
) -> List[Interview]:
    now = now or utcnow()
    result = await db.execute(
        select(Interview)
        .join(JobApplication, JobApplication.id == Interview.application_id)
        .where(JobApplication.candidate_id == candidate_id, Interview.scheduled_time >= now)
        .order_by(Interview.scheduled_time.asc())
    )
    return list(result.scalars().all())
