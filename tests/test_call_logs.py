import csv
import io
import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.models import Appointment, CallLog
from app.services import dialer
from app.services.dialer import DialerError

VIEWER = {"campaigns": {"view": True}, "callLogs": {"view": True}}


@pytest_asyncio.fixture
async def call_log(db_session, campaign, member, contact):
    log = CallLog(
        campaign_id=campaign.id,
        contact_id=contact.id,
        call_sid="CA100",
        status="COMPLETED",
        duration=95,
        recording_url="https://recordings.example.com/CA100.mp3",
        started_at=datetime(2025, 3, 1, 15, 0),
        ended_at=datetime(2025, 3, 1, 15, 2),
    )
    db_session.add(log)
    await db_session.commit()
    return log


class TestCallLogs:
    @pytest.mark.asyncio
    async def test_list_includes_booked_appointment(self, client, db_session, admin_headers, call_log, campaign, contact):
        db_session.add(Appointment(
            campaign_id=campaign.id, contact_id=contact.id, call_log_id=call_log.id,
            title="Demo", appointment_time=datetime(2025, 3, 4, 10, 0),
        ))
        await db_session.commit()

        response = await client.get("/api/call-logs", headers=admin_headers)
        assert response.status_code == 200
        [item] = response.json()
        assert item["call_sid"] == "CA100"
        assert item["campaign"]["name"] == "Spring outreach"
        assert item["contact"]["name"] == "Ada Lovelace"
        assert item["appointment"]["title"] == "Demo"
        assert item["appointment"]["status"] == "SCHEDULED"

    @pytest.mark.asyncio
    async def test_list_filters(self, client, admin_headers, call_log, campaign):
        response = await client.get("/api/call-logs", params={"campaign_id": str(uuid.uuid4())}, headers=admin_headers)
        assert response.json() == []

        response = await client.get("/api/call-logs", params={"start_date": "2025-03-01T00:00:00Z"}, headers=admin_headers)
        assert len(response.json()) == 1
        response = await client.get("/api/call-logs", params={"start_date": "2025-03-02T00:00:00Z"}, headers=admin_headers)
        assert response.json() == []
        response = await client.get("/api/call-logs", params={"end_date": "2025-03-01T15:01:00Z"}, headers=admin_headers)
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_other_tenant_sees_nothing(self, client, other_admin_headers, call_log):
        response = await client.get("/api/call-logs", headers=other_admin_headers)
        assert response.json() == []
        response = await client.get(f"/api/call-logs/{call_log.id}", headers=other_admin_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Call log not found or unauthorized"}

    @pytest.mark.asyncio
    async def test_unassigned_employee_sees_nothing(self, client, call_log, campaign, make_employee):
        _, headers = await make_employee(VIEWER)
        assert (await client.get("/api/call-logs", headers=headers)).json() == []

        _, headers = await make_employee(VIEWER, campaigns=[campaign])
        assert len((await client.get("/api/call-logs", headers=headers)).json()) == 1

    @pytest.mark.asyncio
    async def test_create(self, client, admin_headers, campaign, member, contact):
        response = await client.post(
            "/api/call-logs",
            json={
                "campaign_id": str(campaign.id),
                "contact_id": str(contact.id),
                "call_sid": "CA200",
                "status": "NO_ANSWER",
                "started_at": "2025-03-01T10:00:00+02:00",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["call_sid"] == "CA200"
        assert body["started_at"].startswith("2025-03-01T08:00:00")
        assert body["contact"]["phone"] == contact.phone

    @pytest.mark.asyncio
    async def test_create_in_foreign_campaign(self, client, other_admin_headers, campaign, contact):
        response = await client.post(
            "/api/call-logs",
            json={"campaign_id": str(campaign.id), "contact_id": str(contact.id), "call_sid": "CA1", "status": "X"},
            headers=other_admin_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_outcome(self, client, admin_headers, call_log):
        response = await client.put(
            f"/api/call-logs/{call_log.id}",
            json={"status": "FAILED", "duration": 12, "transcript_id": "tr-1"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "FAILED"
        assert body["duration"] == 12
        assert body["transcript_id"] == "tr-1"
        assert body["recording_url"] == call_log.recording_url

    @pytest.mark.asyncio
    async def test_viewer_cannot_update(self, client, call_log, campaign, make_employee):
        _, headers = await make_employee(VIEWER, campaigns=[campaign])
        response = await client.put(f"/api/call-logs/{call_log.id}", json={"status": "FAILED"}, headers=headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_detaches_appointment(self, client, db_session, admin_headers, call_log, campaign, contact):
        appointment = Appointment(
            campaign_id=campaign.id, contact_id=contact.id, call_log_id=call_log.id,
            title="Demo", appointment_time=datetime(2025, 3, 4, 10, 0),
        )
        db_session.add(appointment)
        await db_session.commit()

        response = await client.delete(f"/api/call-logs/{call_log.id}", headers=admin_headers)
        assert response.status_code == 204

        db_session.expire_all()
        assert (await db_session.execute(select(CallLog))).first() is None
        kept = (await db_session.execute(select(Appointment))).scalar_one()
        assert kept.call_log_id is None

    @pytest.mark.asyncio
    async def test_export(self, client, admin_headers, call_log):
        response = await client.get("/api/call-logs/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-disposition"].startswith('attachment; filename="call-logs-')

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "call_sid"
        assert rows[1][:6] == ["CA100", "Spring outreach", "Ada Lovelace", "+15550001111", "COMPLETED", "95"]

    @pytest.mark.asyncio
    async def test_export_requires_download(self, client, call_log, campaign, make_employee):
        _, headers = await make_employee(VIEWER, campaigns=[campaign])
        response = await client.get("/api/call-logs/export", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "You don't have permission to download callLogs"


class TestCampaignTranscripts:
    @pytest.mark.asyncio
    async def test_lists_only_this_campaigns_calls(self, client, admin_headers, call_log, campaign, monkeypatch):
        monkeypatch.setattr(dialer, "get_all_transcripts", AsyncMock(return_value=[
            {"id": 1, "call_sid": "CA100", "phone_number": "+15550001111", "last_updated": "2025-03-01T15:02:00Z"},
            {"id": 2, "call_sid": "CA-elsewhere", "phone_number": "+15559999999"},
        ]))

        response = await client.get(f"/api/campaigns/{campaign.id}/call-logs", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"call_logs": [{
            "id": 1,
            "call_sid": "CA100",
            "phone_number": "+15550001111",
            "timestamp": "2025-03-01T15:02:00",
            "status": "completed",
            "duration": "01:35",
            "has_recording": True,
            "has_transcript": True,
        }]}

    @pytest.mark.asyncio
    async def test_transcript(self, client, admin_headers, call_log, campaign, monkeypatch):
        get_transcript = AsyncMock(return_value=[{"role": "assistant", "content": "Hi"}])
        monkeypatch.setattr(dialer, "get_transcript", get_transcript)

        response = await client.get(f"/api/campaigns/{campaign.id}/call-logs/CA100", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"transcript": [{"role": "assistant", "content": "Hi"}]}
        get_transcript.assert_awaited_once_with("CA100")

    @pytest.mark.asyncio
    async def test_transcript_of_foreign_call(self, client, admin_headers, call_log, campaign, monkeypatch):
        get_transcript = AsyncMock(return_value=[])
        monkeypatch.setattr(dialer, "get_transcript", get_transcript)

        response = await client.get(f"/api/campaigns/{campaign.id}/call-logs/CA-elsewhere", headers=admin_headers)
        assert response.status_code == 404
        get_transcript.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dialer_failure_is_mirrored(self, client, admin_headers, call_log, campaign, monkeypatch):
        monkeypatch.setattr(dialer, "get_all_transcripts", AsyncMock(side_effect=DialerError(502, "AI dialer unreachable")))
        response = await client.get(f"/api/campaigns/{campaign.id}/call-logs", headers=admin_headers)
        assert response.status_code == 502
        assert response.json() == {"error": "AI dialer unreachable"}
