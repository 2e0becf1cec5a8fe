from sqlalchemy import Column, Text, JSON, DateTime, Integer, Enum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.models.enums import CampaignStatus, ContactStatus
from app.utils.time import utcnow

class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    status = Column(Enum(CampaignStatus), nullable=False, default=CampaignStatus.ACTIVE)
    settings = Column(JSON, nullable=False, default=dict)
    # Prompts handed to the AI dialer when a call is placed for this campaign
    system_message = Column(Text, nullable=True)
    initial_message = Column(Text, nullable=True)
    admin_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    admin = relationship("User", lazy="selectin")

class CampaignContact(Base):
    __tablename__ = "campaign_contacts"

    campaign_id = Column(Uuid, ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True)
    status = Column(Enum(ContactStatus), nullable=False, default=ContactStatus.ACTIVE)
    last_called = Column(DateTime, nullable=True)
    call_attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    contact = relationship("Contact", lazy="selectin")
