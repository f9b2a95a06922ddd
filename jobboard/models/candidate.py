from sqlalchemy import Column, String, DateTime
from jobboard.database import Base
from jobboard.utils.dates import utcnow


class Candidate(Base):
    """Job seeker profile, keyed by the identity provider's subject id."""
    __tablename__ = "candidates"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    resume = Column(String)  # Blob store URL of the current resume
    image = Column(String)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "resume": self.resume,
            "image": self.image,
        }
