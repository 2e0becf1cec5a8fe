from fastapi import APIRouter, HTTPException, Depends, File, Response, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import csv
import io
import logging
import uuid

from app.core.database import get_db
from app.core.permissions import Actor, contact_scope, get_accessible_contact, require_permission
from app.models import Appointment, CallLog, CampaignContact, Contact
from app.schemas.base import Pagination
from app.schemas.contact import ContactCreate, ContactPage, ContactRead, ContactUpdate
from app.utils.time import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

PAGE_SIZE = 10
EXPORT_COLUMNS = ["name", "phone", "email", "tags"]

def split_tags(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [tag.strip() for tag in value.split(",") if tag.strip()]

async def phone_taken(db: AsyncSession, admin_id: uuid.UUID, phone: str, exclude_id: uuid.UUID = None) -> bool:
    stmt = select(Contact.id).where(Contact.admin_id == admin_id, Contact.phone == phone)
    if exclude_id:
        stmt = stmt.where(Contact.id != exclude_id)
    result = await db.execute(stmt)
    return result.first() is not None

@router.get("", response_model=ContactPage)
async def get_contacts(
    search: Optional[str] = None,
    tags: Optional[str] = None,
    page: int = 1,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "view"))
):
    """
    List visible contacts, newest first, ten per page.

    ``search`` matches name, phone or email; ``tags`` is a comma separated list
    and a contact must carry every one of them.
    """
    page = max(page, 1)
    conditions = [contact_scope(actor)]
    if search:
        conditions.append(or_(
            Contact.name.icontains(search, autoescape=True),
            Contact.phone.contains(search, autoescape=True),
            Contact.email.icontains(search, autoescape=True),
        ))
    stmt = select(Contact).where(*conditions).order_by(Contact.created_at.desc())

    wanted_tags = split_tags(tags)
    if wanted_tags:
        # JSON list containment differs per backend, so tags are matched here
        result = await db.execute(stmt)
        matching = [c for c in result.scalars().all() if set(wanted_tags) <= set(c.tags or [])]
        total = len(matching)
        contacts = matching[(page - 1) * PAGE_SIZE:page * PAGE_SIZE]
    else:
        total_result = await db.execute(select(func.count(Contact.id)).where(*conditions))
        total = total_result.scalar() or 0
        result = await db.execute(stmt.offset((page - 1) * PAGE_SIZE).limit(PAGE_SIZE))
        contacts = result.scalars().all()

    return ContactPage(
        contacts=[ContactRead.model_validate(c) for c in contacts],
        pagination=Pagination.build(total, page, PAGE_SIZE),
    )

@router.post("", response_model=ContactRead, status_code=201)
async def create_contact(
    request: ContactCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "create"))
):
    if await phone_taken(db, actor.tenant_id, request.phone):
        raise HTTPException(status_code=400, detail="A contact with this phone number already exists")

    contact = Contact(**request.model_dump(), admin_id=actor.tenant_id)
    db.add(contact)
    await db.commit()
    logger.info(f"Contact {contact.id} created by {actor.id}")
    return contact

@router.get("/export")
async def export_contacts(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "export"))
):
    result = await db.execute(
        select(Contact).where(contact_scope(actor)).order_by(Contact.created_at.desc())
    )

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for contact in result.scalars().all():
        writer.writerow([contact.name, contact.phone, contact.email or "", ",".join(contact.tags or [])])

    filename = f"contacts-{utcnow().date().isoformat()}.csv"
    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

@router.post("/import")
async def import_contacts(
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "import"))
):
    """
    Import contacts from a CSV with ``name``, ``phone`` and optional ``email``
    and ``tags`` columns (header case is ignored). Phones already in the tenant
    or repeated in the file are skipped.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    try:
        content = (await file.read()).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    reader = csv.DictReader(io.StringIO(content))
    if reader.fieldnames is None:
        raise HTTPException(status_code=400, detail="CSV file is empty")
    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]

    rows = []
    for record in reader:
        rows.append({
            "name": (record.get("name") or "").strip(),
            "phone": (record.get("phone") or "").strip(),
            "email": (record.get("email") or "").strip() or None,
            "tags": split_tags(record.get("tags")),
        })

    invalid = []
    for index, row in enumerate(rows):
        errors = []
        if not row["name"]:
            errors.append("Name is required")
        if not row["phone"]:
            errors.append("Phone is required")
        if not errors:
            try:
                rows[index] = ContactCreate.model_validate(row).model_dump()
            except ValidationError as e:
                errors.extend(
                    f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
                )
        if errors:
            # Row 1 is the header
            invalid.append({"row": index + 2, "contact": row, "errors": errors})
    if invalid:
        return JSONResponse(status_code=400, content={"error": "Invalid contacts found", "details": invalid})

    existing_result = await db.execute(select(Contact.phone).where(Contact.admin_id == actor.tenant_id))
    seen_phones = set(existing_result.scalars().all())

    imported = skipped = 0
    for row in rows:
        if row["phone"] in seen_phones:
            skipped += 1
            continue
        seen_phones.add(row["phone"])
        db.add(Contact(**row, admin_id=actor.tenant_id))
        imported += 1
    await db.commit()

    logger.info(f"Imported {imported} contacts for tenant {actor.tenant_id} ({skipped} skipped)")
    return {
        "message": "Contacts imported successfully",
        "imported": imported,
        "skipped": skipped,
    }

@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "view"))
):
    return await get_accessible_contact(contact_id, actor, db)

@router.put("/{contact_id}", response_model=ContactRead)
async def update_contact(
    contact_id: uuid.UUID,
    request: ContactUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "edit"))
):
    contact = await get_accessible_contact(contact_id, actor, db)
    data = request.model_dump(exclude_unset=True)

    phone = (data.get("phone") or "").strip()
    if phone and phone != contact.phone and await phone_taken(db, contact.admin_id, phone, exclude_id=contact.id):
        raise HTTPException(status_code=400, detail="A contact with this phone number already exists")

    for field, value in data.items():
        if field in ("name", "phone"):
            if not value or not value.strip():
                continue
            value = value.strip()
        elif field in ("tags", "custom_fields") and value is None:
            continue
        setattr(contact, field, value)
    await db.commit()
    await db.refresh(contact)
    return contact

@router.delete("/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_permission("contacts", "delete"))
):
    contact = await get_accessible_contact(contact_id, actor, db)
    await db.execute(delete(Appointment).where(Appointment.contact_id == contact.id))
    await db.execute(delete(CallLog).where(CallLog.contact_id == contact.id))
    await db.execute(delete(CampaignContact).where(CampaignContact.contact_id == contact.id))
    await db.execute(delete(Contact).where(Contact.id == contact.id))
    await db.commit()
    logger.info(f"Contact {contact_id} deleted by {actor.id}")
    return Response(status_code=204)
