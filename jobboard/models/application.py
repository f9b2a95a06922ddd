from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from jobboard.database import Base
from jobboard.utils.dates import utcnow, isoformat

# Pipeline order; the workflow does not enforce it
APPLICATION_STATUSES = ('pending', 'reviewed', 'shortlisted', 'rejected', 'interviewed', 'offered', 'hired')


class JobApplication(Base):
    """
    A candidate's application to a job.
    The resume URL is a snapshot taken when the candidate applied.
    """
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("candidate_id", "job_id", name="uq_job_applications_candidate_job"),
    )

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(String, ForeignKey("candidates.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    resume = Column(String, nullable=False)
    cover_letter = Column(Text)
    expected_salary = Column(Integer)

    status = Column(String, nullable=False, default='pending', index=True)
    recruiter_notes = Column(Text)
    recruiter_rating = Column(Integer)  # 1-5

    application_date = Column(DateTime, default=utcnow, index=True)
    last_status_update = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    candidate = relationship("Candidate", lazy="selectin")
    job = relationship("Job", lazy="selectin")
    company = relationship("Company", lazy="selectin")

    def to_dict(self):
        data = {
            "id": self.id,
            "candidateId": self.candidate_id,
            "jobId": self.job_id,
            "companyId": self.company_id,
            "resume": self.resume,
            "coverLetter": self.cover_letter,
            "expectedSalary": self.expected_salary,
            "status": self.status,
            "recruiterNotes": self.recruiter_notes,
            "recruiterRating": self.recruiter_rating,
            "applicationDate": isoformat(self.application_date),
            "lastStatusUpdate": isoformat(self.last_status_update),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        # Only relations that are already loaded; never trigger IO from here
        candidate = self.__dict__.get("candidate")
        if candidate is not None:
            data["candidate"] = {
                "id": candidate.id,
                "name": candidate.name,
                "email": candidate.email,
                "image": candidate.image,
                # Recruiters see the resume submitted with the application
                "resume": self.resume,
            }
        job = self.__dict__.get("job")
        if job is not None:
            data["job"] = job.to_dict()
        company = self.__dict__.get("company")
        if company is not None:
            data["company"] = company.to_dict()
        return data
