from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.utils.time import utcnow

class CallLog(Base):
    __tablename__ = "call_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    campaign_id = Column(Uuid, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    call_sid = Column(Text, nullable=False, index=True)
    status = Column(Text, nullable=False)
    duration = Column(Integer, nullable=True)  # seconds
    recording_url = Column(Text, nullable=True)
    transcript_id = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    campaign = relationship("Campaign", lazy="selectin")
    contact = relationship("Contact", lazy="selectin")
