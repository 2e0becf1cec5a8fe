from sqlalchemy import Column, ForeignKey, JSON, DateTime, Uuid
from sqlalchemy.orm import relationship
import uuid
from app.core.database import Base
from app.utils.time import utcnow

class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)
    admin_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    permissions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", foreign_keys=[user_id], lazy="selectin")

class CampaignEmployee(Base):
    __tablename__ = "campaign_employees"

    campaign_id = Column(Uuid, ForeignKey("campaigns.id", ondelete="CASCADE"), primary_key=True)
    employee_id = Column(Uuid, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True)
    assigned_at = Column(DateTime, nullable=False, default=utcnow)
