from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, JSON, Index
from jobboard.database import Base
from jobboard.utils.dates import utcnow, isoformat

PARTICIPANT_TYPES = ('recruiter', 'candidate')


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_sender_receiver", "sender_id", "receiver_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("job_applications.id"), nullable=False, index=True)

    # Company ids are stored as strings so both participant kinds share a column
    sender_id = Column(String, nullable=False)
    sender_type = Column(String, nullable=False)
    receiver_id = Column(String, nullable=False, index=True)
    receiver_type = Column(String, nullable=False)

    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    attachments = Column(JSON, default=list)
    created_at = Column(DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "applicationId": self.application_id,
            "senderId": self.sender_id,
            "senderType": self.sender_type,
            "receiverId": self.receiver_id,
            "receiverType": self.receiver_type,
            "content": self.content,
            "isRead": self.is_read,
            "attachments": self.attachments or [],
            "createdAt": isoformat(self.created_at),
        }
