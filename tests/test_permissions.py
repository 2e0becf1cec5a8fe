import uuid

import pytest
from types import SimpleNamespace

from app.core.permissions import Actor, effective_permissions
from app.models import Campaign, Contact, UserRole
from app.schemas.permissions import AccessType, Permissions, admin_permissions, no_permissions


def fake_user(role):
    return SimpleNamespace(id=uuid.uuid4(), role=role)


def fake_employee(permissions, admin_id=None):
    return SimpleNamespace(id=uuid.uuid4(), admin_id=admin_id or uuid.uuid4(), permissions=permissions)


class TestPermissionDocument:
    def test_admin_permissions_grant_everything(self):
        doc = admin_permissions().to_json()
        assert doc["contacts"]["accessType"] == "ALL"
        assert doc["contacts"]["import"] is True
        assert doc["callLogs"] == {"view": True, "download": True}
        assert doc["aiSummary"] == {"view": True}
        assert all(doc["campaigns"].values())

    def test_no_permissions_is_campaign_only(self):
        doc = no_permissions().to_json()
        assert doc["contacts"]["accessType"] == "CAMPAIGN_ONLY"
        assert not any(v for k, v in doc["contacts"].items() if k != "accessType")
        assert not any(doc["campaigns"].values())

    def test_missing_flags_default_to_false(self):
        permissions = Permissions.model_validate({"contacts": {"view": True}})
        assert permissions.contacts.view is True
        assert permissions.contacts.export is False
        assert permissions.call_logs.view is False

    def test_legacy_assigned_access_type(self):
        permissions = Permissions.model_validate({"contacts": {"accessType": "ASSIGNED"}})
        assert permissions.contacts.access_type == AccessType.CAMPAIGN_ONLY

    def test_unknown_keys_are_ignored(self):
        permissions = Permissions.model_validate({"billing": {"view": True}, "campaigns": {"view": True, "launch": True}})
        assert "billing" not in permissions.to_json()
        assert "launch" not in permissions.to_json()["campaigns"]


class TestEffectivePermissions:
    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.SUPER_ADMIN])
    def test_admins_get_everything(self, role):
        assert effective_permissions(fake_user(role), None) == admin_permissions()

    def test_employee_uses_stored_document(self):
        employee = fake_employee({"campaigns": {"view": True}})
        permissions = effective_permissions(fake_user(UserRole.EMPLOYEE), employee)
        assert permissions.campaigns.view is True
        assert permissions.campaigns.edit is False

    def test_employee_without_document_gets_nothing(self):
        permissions = effective_permissions(fake_user(UserRole.EMPLOYEE), fake_employee(None))
        assert permissions == no_permissions()


class TestActor:
    def test_can_looks_up_flags(self):
        employee = fake_employee({"callLogs": {"view": True}})
        user = fake_user(UserRole.EMPLOYEE)
        actor = Actor(user=user, employee=employee, permissions=effective_permissions(user, employee))
        assert actor.can("callLogs", "view")
        assert not actor.can("callLogs", "download")
        assert not actor.can("billing", "view")
        assert not actor.can("contacts", "accessType")

    def test_tenant_id(self):
        admin = fake_user(UserRole.ADMIN)
        assert Actor(user=admin, employee=None, permissions=admin_permissions()).tenant_id == admin.id

        employee = fake_employee({}, admin_id=admin.id)
        actor = Actor(user=fake_user(UserRole.EMPLOYEE), employee=employee, permissions=no_permissions())
        assert actor.tenant_id == admin.id
        assert actor.is_employee and not actor.is_admin


VIEW_ALL = {
    "campaigns": {"view": True},
    "contacts": {"view": True, "accessType": "ALL"},
}
VIEW_ASSIGNED = {
    "campaigns": {"view": True},
    "contacts": {"view": True, "accessType": "CAMPAIGN_ONLY"},
}


class TestScopes:
    @pytest.mark.asyncio
    async def test_employee_without_flag_is_forbidden(self, client, make_employee):
        _, headers = await make_employee({})
        response = await client.get("/api/campaigns", headers=headers)
        assert response.status_code == 403
        assert response.json() == {"error": "You don't have permission to view campaigns"}

    @pytest.mark.asyncio
    async def test_employee_sees_only_assigned_campaigns(self, client, db_session, admin, campaign, make_employee):
        other = Campaign(name="Unassigned", admin_id=admin.id)
        db_session.add(other)
        await db_session.commit()
        _, headers = await make_employee(VIEW_ALL, campaigns=[campaign])

        response = await client.get("/api/campaigns", headers=headers)
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [str(campaign.id)]

        response = await client.get(f"/api/campaigns/{other.id}", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Campaign not found or unauthorized"

    @pytest.mark.asyncio
    async def test_admin_cannot_see_other_tenant(self, client, campaign, other_admin_headers):
        response = await client.get(f"/api/campaigns/{campaign.id}", headers=other_admin_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_contact_access_all_vs_campaign_only(self, client, db_session, admin, campaign, member, contact, make_employee):
        loose = Contact(name="Not in campaign", phone="+15559990000", admin_id=admin.id)
        db_session.add(loose)
        await db_session.commit()

        _, all_headers = await make_employee(VIEW_ALL)
        response = await client.get("/api/contacts", headers=all_headers)
        assert response.json()["pagination"]["total"] == 2

        _, assigned_headers = await make_employee(VIEW_ASSIGNED, campaigns=[campaign])
        response = await client.get("/api/contacts", headers=assigned_headers)
        assert [c["id"] for c in response.json()["contacts"]] == [str(contact.id)]

        response = await client.get(f"/api/contacts/{loose.id}", headers=assigned_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_campaign_only_employee_without_assignment_sees_no_contacts(self, client, member, make_employee):
        _, headers = await make_employee(VIEW_ASSIGNED)
        response = await client.get("/api/contacts", headers=headers)
        assert response.status_code == 200
        assert response.json()["contacts"] == []

    @pytest.mark.asyncio
    async def test_inactive_user_is_rejected(self, client, make_user):
        _, headers = await make_user("blocked@example.com", is_active=False)
        response = await client.get("/api/auth/me", headers=headers)
        assert response.status_code == 401
