"""Database models."""

from .enums import CampaignStatus, UserRole, UserStatus, ContactStatus, AppointmentStatus
from .user import User, AdminSettings
from .employee import Employee, CampaignEmployee
from .campaign import Campaign, CampaignContact
from .contact import Contact
from .call_log import CallLog
from .appointment import Appointment
