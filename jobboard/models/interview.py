from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from jobboard.database import Base
from jobboard.utils.dates import utcnow, isoformat

INTERVIEW_STATUSES = ('scheduled', 'completed', 'cancelled', 'rescheduled')
MEETING_TYPES = ('online', 'in-person')


class InterviewInterviewer(Base):
    __tablename__ = "interview_interviewers"

    interview_id = Column(Integer, ForeignKey("interviews.id", ondelete="CASCADE"), primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id"), primary_key=True, index=True)


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("job_applications.id"), nullable=False, index=True)

    scheduled_time = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    status = Column(String, nullable=False, default='scheduled', index=True)
    meeting_type = Column(String, nullable=False)

    # Meeting details: online uses platform/join_url, in-person uses location
    location = Column(String)
    platform = Column(String)
    join_url = Column(String)
    notes = Column(Text)

    candidate_confirmed = Column(Boolean, nullable=False, default=False)
    reminder_sent = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    application = relationship("JobApplication", lazy="selectin")
    interviewer_links = relationship(
        "InterviewInterviewer", lazy="selectin", cascade="all, delete-orphan"
    )

    @property
    def interviewers(self):
        return [link.company_id for link in self.interviewer_links]

    @property
    def meeting_details(self):
        return {
            "location": self.location,
            "platform": self.platform,
            "joinUrl": self.join_url,
            "notes": self.notes,
        }

    def to_dict(self):
        data = {
            "id": self.id,
            "applicationId": self.application_id,
            "scheduledTime": isoformat(self.scheduled_time),
            "duration": self.duration,
            "status": self.status,
            "meetingType": self.meeting_type,
            "meetingDetails": self.meeting_details,
            "interviewers": self.interviewers,
            "candidateConfirmed": self.candidate_confirmed,
            "reminderSent": self.reminder_sent,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        application = self.__dict__.get("application")
        if application is not None:
            data["application"] = application.to_dict()
        return data
