from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from jobboard.database import Base
from jobboard.utils.dates import utcnow


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    location = Column(String)
    visible = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "companyId": self.company_id,
            "title": self.title,
            "location": self.location,
        }
