"""Employee capability matrix.

Stored on ``Employee.permissions`` as camelCase JSON::

    {"contacts": {..., "accessType": "ALL"}, "campaigns": {...},
     "callLogs": {...}, "aiSummary": {...}}

Unknown keys are ignored and missing flags read as ``False``.
"""
import enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

class AccessType(str, enum.Enum):
    ALL = "ALL"
    CAMPAIGN_ONLY = "CAMPAIGN_ONLY"

class PermissionGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class ContactPermissions(PermissionGroup):
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False
    import_: bool = Field(False, alias="import")
    export: bool = False
    access_type: AccessType = Field(AccessType.CAMPAIGN_ONLY, alias="accessType")

    @field_validator("access_type", mode="before")
    @classmethod
    def accept_legacy_access_type(cls, v):
        # Older profiles spell campaign-only access as "ASSIGNED"
        if v == "ASSIGNED":
            return AccessType.CAMPAIGN_ONLY
        return v

class CampaignPermissions(PermissionGroup):
    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False

class CallLogPermissions(PermissionGroup):
    view: bool = False
    download: bool = False

class AISummaryPermissions(PermissionGroup):
    view: bool = False

class Permissions(PermissionGroup):
    contacts: ContactPermissions = Field(default_factory=ContactPermissions)
    campaigns: CampaignPermissions = Field(default_factory=CampaignPermissions)
    call_logs: CallLogPermissions = Field(default_factory=CallLogPermissions, alias="callLogs")
    ai_summary: AISummaryPermissions = Field(default_factory=AISummaryPermissions, alias="aiSummary")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

def admin_permissions() -> Permissions:
    return Permissions(
        contacts=ContactPermissions(
            view=True, create=True, edit=True, delete=True,
            import_=True, export=True, access_type=AccessType.ALL,
        ),
        campaigns=CampaignPermissions(view=True, create=True, edit=True, delete=True),
        call_logs=CallLogPermissions(view=True, download=True),
        ai_summary=AISummaryPermissions(view=True),
    )

def no_permissions() -> Permissions:
    return Permissions()
