from sqlalchemy import Column, Text, DateTime, Enum, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.models.enums import AppointmentStatus
from app.utils.time import utcnow

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    campaign_id = Column(Uuid, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    call_log_id = Column(Uuid, ForeignKey("call_logs.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    campaign = relationship("Campaign", lazy="selectin")
    contact = relationship("Contact", lazy="selectin")
    call_log = relationship("CallLog", foreign_keys=[call_log_id], lazy="selectin")
