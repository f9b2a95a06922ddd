# Database models package
from jobboard.models.company import Company
from jobboard.models.candidate import Candidate
from jobboard.models.job import Job
from jobboard.models.application import JobApplication, APPLICATION_STATUSES
from jobboard.models.interview import Interview, InterviewInterviewer, INTERVIEW_STATUSES, MEETING_TYPES
from jobboard.models.message import Message, PARTICIPANT_TYPES

__all__ = [
    "Company",
    "Candidate",
    "Job",
    "JobApplication",
    "APPLICATION_STATUSES",
    "Interview",
    "InterviewInterviewer",
    "INTERVIEW_STATUSES",
    "MEETING_TYPES",
    "Message",
    "PARTICIPANT_TYPES",
]
