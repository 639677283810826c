import json
import logging
from collections.abc import Mapping
from typing import Any

from app.core.capabilities import CapabilityRule
from app.core.capability_tree import PERMISSION_TREE_LEAF_IDS
from app.core.roles import is_admin_role, normalize_role
from app.schemas.role import (
    AppRole,
    AppRoleInput,
    AppRoleRecord,
    PermissionProfile,
    PermissionProfileRecord,
)

logger = logging.getLogger(__name__)

LEGACY_CAPABILITY_ALIASES: dict[str, str] = {
    "edit_permissions": "admin.permissions",
}


def _parse_json(value: str | None, fallback: Any) -> Any:
    if not value:
        return fallback
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.warning("capability_json_invalid length=%s", len(value))
        return fallback


def normalize_capability_value(value: Any) -> CapabilityRule:
    if isinstance(value, bool):
        return CapabilityRule(visible=value, editable=value)
    if isinstance(value, CapabilityRule):
        return value
    if isinstance(value, Mapping) and ("visible" in value or "editable" in value):
        visible = value.get("visible")
        editable = value.get("editable")
        if editable is None:
            editable = visible
        return CapabilityRule(visible=bool(visible), editable=bool(editable))
    return CapabilityRule(visible=False, editable=False)


def normalize_capabilities(raw: Mapping[str, Any] | None) -> dict[str, CapabilityRule]:
    if not raw:
        return {}
    normalized = {str(key): normalize_capability_value(entry) for key, entry in raw.items()}
    for legacy_key, target_key in LEGACY_CAPABILITY_ALIASES.items():
        if target_key in normalized or legacy_key not in raw:
            continue
        normalized[target_key] = normalize_capability_value(raw[legacy_key])
    return normalized


def parse_capabilities(value: str | None) -> dict[str, CapabilityRule]:
    parsed = _parse_json(value, {})
    if not isinstance(parsed, dict):
        logger.warning("capability_json_not_object type=%s", type(parsed).__name__)
        return {}
    return normalize_capabilities(parsed)


def parse_allowed_sections(value: str | None) -> list[str]:
    parsed = _parse_json(value, [])
    if not isinstance(parsed, list):
        return []
    return [str(item) for item in parsed]


def serialize_capabilities(capabilities: Mapping[str, Any] | None) -> dict[str, dict[str, bool]]:
    if not capabilities:
        return {}
    result: dict[str, dict[str, bool]] = {}
    for key, value in capabilities.items():
        normalized_key = LEGACY_CAPABILITY_ALIASES.get(key, key)
        if hasattr(value, "visible") and hasattr(value, "editable"):
            rule = CapabilityRule(visible=bool(value.visible), editable=bool(value.editable))
        else:
            rule = normalize_capability_value(value)
        result[normalized_key] = rule.to_dict()
    return result


def dump_capabilities(capabilities: Mapping[str, Any] | None) -> str:
    return json.dumps(serialize_capabilities(capabilities), sort_keys=True)


def admin_capabilities() -> dict[str, CapabilityRule]:
    return {leaf_id: CapabilityRule(visible=True, editable=True) for leaf_id in PERMISSION_TREE_LEAF_IDS}


def to_app_role(record: AppRoleRecord) -> AppRole:
    return AppRole(
        id=record.id,
        role_label=record.role_label,
        allowed_sections=parse_allowed_sections(record.allowed_sections),
        capabilities=parse_capabilities(record.capabilities),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def to_permission_profile(
    record: PermissionProfileRecord,
    role_record: AppRoleRecord | None = None,
) -> PermissionProfile:
    role_label = (role_record.role_label if role_record else "") or record.role_label or ""
    source = role_record if role_record is not None else record
    allowed_sections = parse_allowed_sections(source.allowed_sections)

    if is_admin_role(role_label):
        capabilities = admin_capabilities()
    else:
        capabilities = parse_capabilities(source.capabilities)

    return PermissionProfile(
        id=record.id,
        username=record.username,
        display_name=record.display_name,
        brand=record.brand,
        role_label=role_label,
        role_id=record.role_id,
        role=normalize_role(role_label),
        avatar_url=record.avatar_url,
        default_section=record.default_section,
        allowed_sections=allowed_sections,
        capabilities=capabilities,
        notes=record.notes,
        must_change_password=record.must_change_password == 1,
        has_password=bool(record.password_hash),
        last_login_at=record.last_login_at,
    )


def serialize_role(role: AppRoleInput) -> dict[str, str]:
    role_label = (role.role_label or "").strip()
    if not role_label:
        raise ValueError("Role label is required")

    if is_admin_role(role_label):
        capabilities: Mapping[str, Any] = admin_capabilities()
    else:
        capabilities = {key: rule.to_rule() for key, rule in role.capabilities.items()}

    capabilities_json = dump_capabilities(capabilities)
    logger.info(
        "role_serialized role_id=%s role_label=%s input_rules=%s stored_rules=%s",
        role.id,
        role_label,
        len(role.capabilities),
        len(capabilities),
    )
    return {
        "role_label": role_label,
        "allowed_sections": json.dumps(role.allowed_sections),
        "capabilities": capabilities_json,
    }
