"""
Authorization decisions for applications, interviews and messages.

A request acts as exactly one Principal: a company (recruiter account) or
a candidate. The functions here are pure; callers turn a False into the
error their endpoint reports.
"""
from dataclasses import dataclass
from typing import Union

from jobboard.models.application import JobApplication
from jobboard.models.interview import Interview


@dataclass(frozen=True)
class CompanyPrincipal:
    id: int
    kind = "recruiter"

    @property
    def participant_id(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class CandidatePrincipal:
    id: str
    kind = "candidate"

    @property
    def participant_id(self) -> str:
        return self.id


Principal = Union[CompanyPrincipal, CandidatePrincipal]


def owns_application(principal: Principal, application: JobApplication) -> bool:
    if isinstance(principal, CompanyPrincipal):
        return application.company_id == principal.id
    if isinstance(principal, CandidatePrincipal):
        return application.candidate_id == principal.id
    return False


def can_manage_interview(principal: Principal, interview: Interview) -> bool:
    """Companies listed as interviewers may update an interview."""
    return isinstance(principal, CompanyPrincipal) and principal.id in interview.interviewers


def can_confirm_interview(principal: Principal, interview: Interview) -> bool:
    """Only the candidate behind the linked application may confirm."""
    return (
        isinstance(principal, CandidatePrincipal)
        and interview.application is not None
        and interview.application.candidate_id == principal.id
    )


def can_message(principal: Principal, application: JobApplication) -> bool:
    return owns_application(principal, application)
