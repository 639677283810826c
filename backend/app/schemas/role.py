from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.capabilities import CapabilityRule


class CapabilityRuleIn(BaseModel):
    visible: bool = True
    editable: bool = True

    def to_rule(self) -> CapabilityRule:
        return CapabilityRule(visible=self.visible, editable=self.editable)


class AppRoleRecord(BaseModel):
    """Stored role row; JSON columns are kept as text."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    role_label: str
    allowed_sections: str = "[]"
    capabilities: str = "{}"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AppRoleInput(BaseModel):
    id: int | None = None
    role_label: str = Field(max_length=255)
    allowed_sections: list[str] = Field(default_factory=list)
    capabilities: dict[str, CapabilityRuleIn] = Field(default_factory=dict)


class AppRole(BaseModel):
    id: int
    role_label: str
    allowed_sections: list[str]
    capabilities: dict[str, CapabilityRule]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PermissionProfileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    display_name: str
    brand: str | None = "Molino Bongiovanni"
    role_label: str | None = ""
    role_id: int | None = None
    avatar_url: str | None = ""
    default_section: str | None = ""
    # legacy per-user columns, superseded by the role record
    allowed_sections: str = "[]"
    capabilities: str = "{}"
    notes: str | None = None
    password_hash: str = ""
    must_change_password: int = 0
    last_login_at: datetime | None = None


class PermissionProfile(BaseModel):
    id: int
    username: str
    display_name: str
    brand: str | None = None
    role_label: str
    role_id: int | None = None
    role: str
    avatar_url: str | None = None
    default_section: str | None = None
    allowed_sections: list[str]
    capabilities: dict[str, CapabilityRule]
    notes: str | None = None
    must_change_password: bool
    has_password: bool
    last_login_at: datetime | None = None
