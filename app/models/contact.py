from sqlalchemy import Column, Text, JSON, DateTime, ForeignKey, UniqueConstraint, Uuid
import uuid
from app.core.database import Base
from app.utils.time import utcnow

class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (UniqueConstraint("admin_id", "phone", name="uq_contacts_admin_phone"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    custom_fields = Column(JSON, nullable=False, default=dict)
    admin_id = Column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
