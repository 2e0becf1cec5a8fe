from datetime import datetime, timedelta
import math

from app.models import Appointment, AppointmentStatus, CallLog, CampaignContact, ContactStatus
from app.utils.time import utcnow

SUCCESS_STATUS = "COMPLETED"
HISTORY_DAYS = 7
RECENT_ACTIVITY_LIMIT = 10

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def percentage(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0

def is_success(log: CallLog) -> bool:
    return (log.status or "").upper() == SUCCESS_STATUS

def count_appointments(appointments: list[Appointment], status: AppointmentStatus) -> int:
    return len([a for a in appointments if a.status == status])

def calc_call_history(call_logs: list[CallLog], appointments: list[Appointment], now: datetime) -> list[dict]:
    """Per-day calls, success rate and booked appointments, oldest day first."""
    history = []
    for days_ago in range(HISTORY_DAYS):
        day = now - timedelta(days=days_ago)
        day_start = datetime(day.year, day.month, day.day)
        day_end = day_start + timedelta(days=1)
        day_logs = [log for log in call_logs if log.started_at and day_start <= log.started_at < day_end]
        day_appointments = [a for a in appointments if day_start <= a.created_at < day_end]
        history.append({
            "date": day.isoformat(),
            "calls": len(day_logs),
            "success_rate": percentage(len([log for log in day_logs if is_success(log)]), len(day_logs)),
            "appointments": len(day_appointments),
        })
    history.reverse()
    return history

def calc_appointment_funnel(appointments: list[Appointment]) -> list[dict]:
    stages = [
        ("Scheduled", AppointmentStatus.SCHEDULED),
        ("Completed", AppointmentStatus.COMPLETED),
        ("Cancelled", AppointmentStatus.CANCELLED),
        ("No Show", AppointmentStatus.NO_SHOW),
    ]
    return [{"stage": stage, "count": count_appointments(appointments, status)} for stage, status in stages]

def calc_recent_activity(call_logs: list[CallLog], appointments: list[Appointment]) -> list[dict]:
    activity = [
        {
            "id": str(log.id),
            "type": "call",
            "contact": log.contact.name if log.contact else None,
            "timestamp": log.started_at or log.created_at,
            "details": f"{log.status} - {round_half_up((log.duration or 0) / 60)} minutes",
        }
        for log in call_logs
    ]
    activity += [
        {
            "id": str(appointment.id),
            "type": "appointment",
            "contact": appointment.contact.name if appointment.contact else None,
            "timestamp": appointment.appointment_time,
            "details": f"{appointment.title} - {appointment.status.value}",
        }
        for appointment in appointments
    ]
    activity.sort(key=lambda item: item["timestamp"], reverse=True)
    return activity[:RECENT_ACTIVITY_LIMIT]

def build_campaign_stats(
    memberships: list[CampaignContact],
    call_logs: list[CallLog],
    appointments: list[Appointment],
    now: datetime = None,
) -> dict:
    now = now or utcnow()
    total_calls = len(call_logs)
    total_duration = sum(log.duration or 0 for log in call_logs)
    successful_calls = len([log for log in call_logs if is_success(log)])

    return {
        "total_contacts": len(memberships),
        "active_contacts": len([m for m in memberships if m.status == ContactStatus.ACTIVE]),
        "total_calls": total_calls,
        "total_duration": total_duration,
        "average_call_duration": round_half_up(total_duration / total_calls) if total_calls else 0,
        "success_rate": percentage(successful_calls, total_calls),
        "appointments_scheduled": count_appointments(appointments, AppointmentStatus.SCHEDULED),
        "appointments_completed": count_appointments(appointments, AppointmentStatus.COMPLETED),
        "call_history": calc_call_history(call_logs, appointments, now),
        "appointment_funnel": calc_appointment_funnel(appointments),
        "recent_activity": calc_recent_activity(call_logs, appointments),
    }
