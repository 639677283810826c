import json
import logging

import pytest

from app.core.capabilities import CapabilityRule, can_edit, can_view
from app.core.capability_map import (
    admin_capabilities,
    dump_capabilities,
    normalize_capability_value,
    parse_allowed_sections,
    parse_capabilities,
    serialize_capabilities,
    serialize_role,
    to_app_role,
    to_permission_profile,
)
from app.core.capability_tree import PERMISSION_TREE_LEAF_IDS
from app.core.operator_view import build_capability_context
from app.schemas.role import AppRoleInput, AppRoleRecord, CapabilityRuleIn, PermissionProfileRecord


def _profile_record(**overrides) -> PermissionProfileRecord:
    values = {
        "id": 7,
        "username": "mario",
        "display_name": "Mario Rossi",
        "role_label": "operator",
        "role_id": None,
        "password_hash": "$2b$12$hash",
        "must_change_password": 0,
    }
    values.update(overrides)
    return PermissionProfileRecord(**values)


def test_legacy_boolean_values_normalize_to_both_fields():
    assert normalize_capability_value(True) == CapabilityRule(True, True)
    assert normalize_capability_value(False) == CapabilityRule(False, False)


def test_object_values_fall_back_to_visible_for_editable():
    assert normalize_capability_value({"visible": True}) == CapabilityRule(True, True)
    assert normalize_capability_value({"visible": True, "editable": None}) == CapabilityRule(True, True)
    assert normalize_capability_value({"visible": True, "editable": False}) == CapabilityRule(True, False)
    assert normalize_capability_value({"editable": True}) == CapabilityRule(False, True)


def test_unknown_shapes_normalize_to_denied():
    assert normalize_capability_value("yes") == CapabilityRule(False, False)
    assert normalize_capability_value({"other": True}) == CapabilityRule(False, False)
    assert normalize_capability_value(None) == CapabilityRule(False, False)


def test_parse_capabilities_handles_bad_json(caplog):
    with caplog.at_level(logging.WARNING):
        assert parse_capabilities("{not json") == {}
    assert "capability_json_invalid" in caplog.text
    assert parse_capabilities(None) == {}
    assert parse_capabilities("") == {}
    assert parse_capabilities("[1, 2]") == {}


def test_parse_capabilities_mixed_legacy_payload():
    raw = json.dumps({"recipe.basic": True, "recipe.costs": {"visible": True, "editable": False}, "portal": False})
    parsed = parse_capabilities(raw)
    assert parsed == {
        "recipe.basic": CapabilityRule(True, True),
        "recipe.costs": CapabilityRule(True, False),
        "portal": CapabilityRule(False, False),
    }


def test_legacy_alias_applied_only_when_target_missing():
    parsed = parse_capabilities(json.dumps({"edit_permissions": True}))
    assert parsed["admin.permissions"] == CapabilityRule(True, True)

    parsed = parse_capabilities(
        json.dumps({"edit_permissions": True, "admin.permissions": {"visible": False, "editable": False}})
    )
    assert parsed["admin.permissions"] == CapabilityRule(False, False)


def test_serialize_capabilities_renames_legacy_keys():
    serialized = serialize_capabilities({"edit_permissions": CapabilityRule(True, False)})
    assert serialized == {"admin.permissions": {"visible": True, "editable": False}}
    assert serialize_capabilities(None) == {}


def test_serialize_then_parse_round_trip():
    capabilities = {
        "recipe.header.meta": CapabilityRule(True, True),
        "recipe.basic.name": CapabilityRule(False, False),
        "recipe.costs": CapabilityRule(True, False),
        "recipe.actions.save": CapabilityRule(False, True),
    }
    assert parse_capabilities(dump_capabilities(capabilities)) == capabilities


def test_admin_capabilities_cover_every_leaf():
    capabilities = admin_capabilities()
    assert set(capabilities) == set(PERMISSION_TREE_LEAF_IDS)
    assert all(rule == CapabilityRule(True, True) for rule in capabilities.values())
    assert can_view(capabilities, "recipe.ingredients.automatch") is True
    # non-leaf identifiers are not listed explicitly
    assert can_view(capabilities, "recipe.ingredients") is False


def test_parse_allowed_sections():
    assert parse_allowed_sections('["recipes", "docs"]') == ["recipes", "docs"]
    assert parse_allowed_sections('{"a": 1}') == []
    assert parse_allowed_sections(None) == []


def test_to_app_role_parses_json_columns():
    role = to_app_role(
        AppRoleRecord(
            id=3,
            role_label="operator",
            allowed_sections='["recipes"]',
            capabilities='{"recipe.notes": true}',
        )
    )
    assert role.allowed_sections == ["recipes"]
    assert role.capabilities == {"recipe.notes": CapabilityRule(True, True)}


def test_profile_uses_role_record_over_legacy_columns():
    record = _profile_record(capabilities='{"portal": true}', allowed_sections='["docs"]', role_id=3)
    role_record = AppRoleRecord(
        id=3,
        role_label="operator",
        allowed_sections='["recipes"]',
        capabilities='{"recipe.notes.body": {"visible": true, "editable": false}}',
    )
    profile = to_permission_profile(record, role_record)
    assert profile.role == "operator"
    assert profile.allowed_sections == ["recipes"]
    assert profile.capabilities == {"recipe.notes.body": CapabilityRule(True, False)}
    assert can_edit(profile.capabilities, "recipe.notes.body") is False


def test_profile_falls_back_to_legacy_columns_without_role():
    profile = to_permission_profile(_profile_record(capabilities='{"portal": true}'))
    assert profile.capabilities == {"portal": CapabilityRule(True, True)}


def test_admin_profile_ignores_stored_rules():
    record = _profile_record(role_label="admin", capabilities='{"recipe": false}')
    profile = to_permission_profile(record)
    assert profile.role == "admin"
    assert profile.capabilities == admin_capabilities()


def test_operator_without_rules_gets_explicit_empty_map():
    profile = to_permission_profile(_profile_record(capabilities="{}"))
    assert profile.capabilities == {}
    assert can_view(profile.capabilities, "recipe.basic.name", False, True) is False


def test_profile_flags_and_unknown_role():
    profile = to_permission_profile(
        _profile_record(role_label="supervisor", password_hash="", must_change_password=1)
    )
    assert profile.role == "operator"
    assert profile.role_label == "supervisor"
    assert profile.must_change_password is True
    assert profile.has_password is False


def test_serialize_role_requires_label():
    with pytest.raises(ValueError, match="Role label is required"):
        serialize_role(AppRoleInput(role_label="   "))


def test_serialize_role_forces_admin_capabilities():
    payload = serialize_role(
        AppRoleInput(role_label="admin", capabilities={"recipe": CapabilityRuleIn(visible=False, editable=False)})
    )
    stored = json.loads(payload["capabilities"])
    assert set(stored) == set(PERMISSION_TREE_LEAF_IDS)
    assert "recipe" not in stored


def test_serialize_role_operator_payload():
    payload = serialize_role(
        AppRoleInput(
            role_label=" operator ",
            allowed_sections=["recipes"],
            capabilities={"edit_permissions": CapabilityRuleIn(visible=True, editable=False)},
        )
    )
    assert payload["role_label"] == "operator"
    assert json.loads(payload["allowed_sections"]) == ["recipes"]
    assert json.loads(payload["capabilities"]) == {"admin.permissions": {"visible": True, "editable": False}}


def test_padded_admin_label_is_treated_as_operator_everywhere():
    profile = to_permission_profile(_profile_record(role_label=" admin ", capabilities='{"portal": true}'))
    context = build_capability_context(profile)
    assert profile.role == "operator"
    assert profile.capabilities == {"portal": CapabilityRule(True, True)}
    assert context.is_admin is False


def test_admin_role_and_admin_override_agree():
    for label in ("admin", " admin ", "Admin", "operator", ""):
        profile = to_permission_profile(_profile_record(role_label=label, capabilities='{"portal": true}'))
        context = build_capability_context(profile)
        assert (profile.role == "admin") == context.is_admin
        assert (profile.capabilities == admin_capabilities()) == (profile.role == "admin")


def test_serialize_capabilities_accepts_raw_legacy_shapes():
    serialized = serialize_capabilities(
        {
            "a": True,
            "b": {"visible": True},
            "c": False,
            "d": {"visible": True, "editable": False},
            "e": CapabilityRuleIn(visible=True, editable=False),
        }
    )
    assert serialized == {
        "a": {"visible": True, "editable": True},
        "b": {"visible": True, "editable": True},
        "c": {"visible": False, "editable": False},
        "d": {"visible": True, "editable": False},
        "e": {"visible": True, "editable": False},
    }
    assert parse_capabilities(json.dumps({"a": True, "b": {"visible": True}})) == parse_capabilities(
        dump_capabilities({"a": True, "b": {"visible": True}})
    )
