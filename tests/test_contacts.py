import csv
import io

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.models import CallLog, CampaignContact, Contact


class TestContactCrud:
    @pytest.mark.asyncio
    async def test_create_contact(self, client, admin, admin_headers):
        response = await client.post(
            "/api/contacts",
            json={"name": " Alan Turing ", "phone": "+15550003333", "email": "", "tags": ["lead"]},
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Alan Turing"
        assert body["email"] is None
        assert body["tags"] == ["lead"]
        assert body["admin_id"] == str(admin.id)

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, client, admin_headers, contact):
        response = await client.post(
            "/api/contacts",
            json={"name": "Copy", "phone": contact.phone},
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_same_phone_in_other_tenant_is_fine(self, client, other_admin_headers, contact):
        response = await client.post(
            "/api/contacts",
            json={"name": "Copy", "phone": contact.phone},
            headers=other_admin_headers,
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_invalid_email(self, client, admin_headers):
        response = await client.post(
            "/api/contacts",
            json={"name": "Bad", "phone": "+1555", "email": "not-an-email"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request data"

    @pytest.mark.asyncio
    async def test_update_contact(self, client, db_session, admin_headers, contact):
        taken = Contact(name="Taken", phone="+15550009999", admin_id=contact.admin_id)
        db_session.add(taken)
        await db_session.commit()

        response = await client.put(f"/api/contacts/{contact.id}", json={"phone": taken.phone}, headers=admin_headers)
        assert response.status_code == 400

        response = await client.put(f"/api/contacts/{contact.id}", json={"tags": ["vip", "warm"]}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["tags"] == ["vip", "warm"]
        assert response.json()["phone"] == contact.phone

    @pytest.mark.asyncio
    async def test_delete_cascades(self, client, db_session, admin_headers, campaign, member, contact):
        db_session.add(CallLog(campaign_id=campaign.id, contact_id=contact.id, call_sid="CA1", status="COMPLETED"))
        await db_session.commit()

        response = await client.delete(f"/api/contacts/{contact.id}", headers=admin_headers)
        assert response.status_code == 204
        assert (await db_session.execute(select(CampaignContact).where(CampaignContact.contact_id == contact.id))).first() is None
        assert (await db_session.execute(select(CallLog).where(CallLog.contact_id == contact.id))).first() is None

    @pytest.mark.asyncio
    async def test_permission_flags(self, client, contact, make_employee):
        _, headers = await make_employee({"contacts": {"view": True, "accessType": "ALL"}})
        assert (await client.get(f"/api/contacts/{contact.id}", headers=headers)).status_code == 200
        response = await client.delete(f"/api/contacts/{contact.id}", headers=headers)
        assert response.status_code == 403
        assert response.json()["error"] == "You don't have permission to delete contacts"


class TestContactListing:
    @pytest_asyncio.fixture
    async def many_contacts(self, db_session, admin):
        contacts = [
            Contact(
                name=f"Person {i:02d}",
                phone=f"+1555000{i:04d}",
                email=f"person{i}@example.com",
                tags=["even"] if i % 2 == 0 else ["odd", "vip"],
                admin_id=admin.id,
            )
            for i in range(25)
        ]
        db_session.add_all(contacts)
        await db_session.commit()
        return contacts

    @pytest.mark.asyncio
    async def test_pagination(self, client, admin_headers, many_contacts):
        response = await client.get("/api/contacts", params={"page": 3}, headers=admin_headers)
        body = response.json()
        assert body["pagination"] == {"total": 25, "page": 3, "limit": 10, "total_pages": 3}
        assert len(body["contacts"]) == 5

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, client, admin_headers, many_contacts):
        response = await client.get("/api/contacts", params={"search": "PERSON 1"}, headers=admin_headers)
        names = {c["name"] for c in response.json()["contacts"]}
        assert names == {f"Person {i}" for i in range(10, 20)}

    @pytest.mark.asyncio
    async def test_search_matches_phone(self, client, admin_headers, many_contacts):
        response = await client.get("/api/contacts", params={"search": "0007"}, headers=admin_headers)
        assert [c["name"] for c in response.json()["contacts"]] == ["Person 07"]

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, client, admin_headers, many_contacts):
        for term in ("%", "Person_0"):
            response = await client.get("/api/contacts", params={"search": term}, headers=admin_headers)
            assert response.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_tags_require_every_tag(self, client, admin_headers, many_contacts):
        response = await client.get("/api/contacts", params={"tags": "odd,vip"}, headers=admin_headers)
        assert response.json()["pagination"]["total"] == 12

        response = await client.get("/api/contacts", params={"tags": "even,vip"}, headers=admin_headers)
        assert response.json()["pagination"]["total"] == 0


class TestImportExport:
    @pytest.mark.asyncio
    async def test_import_skips_duplicates(self, client, admin_headers, contact):
        content = (
            "Name,Phone,Email,Tags\n"
            "Alan Turing,+15550003333,alan@example.com,\"math, crypto\"\n"
            f"Ada Again,{contact.phone},,\n"
            "Alan Twice,+15550003333,,\n"
        )
        response = await client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Contacts imported successfully", "imported": 1, "skipped": 2}

        response = await client.get("/api/contacts", params={"search": "Alan"}, headers=admin_headers)
        [alan] = response.json()["contacts"]
        assert alan["tags"] == ["math", "crypto"]

    @pytest.mark.asyncio
    async def test_import_reports_invalid_rows(self, client, admin_headers):
        content = "name,phone\nGood,+15550001234\n,+15550005678\nNo Phone,\n"
        response = await client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid contacts found"
        assert [(d["row"], d["errors"]) for d in body["details"]] == [
            (3, ["Name is required"]),
            (4, ["Phone is required"]),
        ]

    @pytest.mark.asyncio
    async def test_import_without_file(self, client, admin_headers):
        response = await client.post("/api/contacts/import", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "No file provided"

    @pytest.mark.asyncio
    async def test_import_rejects_non_utf8(self, client, admin_headers):
        content = "name,phone\nJos\xe9,+15550009999\n".encode("latin-1")
        response = await client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "CSV file must be UTF-8 encoded"}

    @pytest.mark.asyncio
    async def test_import_validates_email(self, client, admin_headers):
        content = "name,phone,email\nGood,+15550001234,good@example.com\nBad,+15550005678,not-an-email\n"
        response = await client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", content, "text/csv")},
            headers=admin_headers,
        )
        assert response.status_code == 400
        [detail] = response.json()["details"]
        assert detail["row"] == 3
        assert detail["errors"][0].startswith("email:")

        response = await client.get("/api/contacts", headers=admin_headers)
        assert response.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_import_requires_flag(self, client, make_employee):
        _, headers = await make_employee({"contacts": {"view": True, "create": True}})
        response = await client.post(
            "/api/contacts/import",
            files={"file": ("contacts.csv", "name,phone\nA,1\n", "text/csv")},
            headers=headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_export(self, client, admin_headers, contact):
        response = await client.get("/api/contacts/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"].startswith('attachment; filename="contacts-')

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows == [["name", "phone", "email", "tags"], ["Ada Lovelace", contact.phone, "ada@example.com", "vip"]]
