"""Caller-side composition of the capability resolver.

The resolver only knows about two flags. This module adds the role handling
the pages need: admins bypass every check unless they are previewing the
operator view, and a rule hiding an ancestor vetoes every identifier below
it. The veto is stricter than the resolver, which lets a more specific rule
win over its ancestors.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.core.capabilities import can_edit, can_view, iter_ancestors
from app.core.capability_tree import INGREDIENT_COLUMN_IDS
from app.core.metrics import increment_counter
from app.core.roles import OPERATOR_ROLE, is_admin_role

logger = logging.getLogger(__name__)

INGREDIENT_ACTIONS_CAPABILITY = "recipe.ingredients.actions"
INGREDIENT_COLUMN_PREFIX = "recipe.ingredients.column."


def get_trace_capability_ids() -> set[str]:
    raw = os.getenv("CAPABILITY_TRACE_IDS", "")
    return {x.strip() for x in raw.split(",") if x.strip()}


@dataclass(frozen=True)
class CapabilityContext:
    capabilities: Mapping[str, Any] | None
    role_label: str | None = None
    is_operator_view: bool = False

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role_label)

    @property
    def is_operator(self) -> bool:
        return self.role_label == OPERATOR_ROLE

    @property
    def bypasses_checks(self) -> bool:
        return self.is_admin and not self.is_operator_view


def effective_capabilities(
    capabilities: Mapping[str, Any] | None,
    operator_capabilities: Mapping[str, Any] | None,
    is_operator_view: bool,
) -> Mapping[str, Any] | None:
    if is_operator_view:
        # operator role not loaded yet: deny-by-default
        return operator_capabilities if operator_capabilities is not None else {}
    return capabilities


def build_capability_context(
    profile: Any,
    operator_capabilities: Mapping[str, Any] | None = None,
    is_operator_view: bool = False,
) -> CapabilityContext:
    capabilities = getattr(profile, "capabilities", None) if profile is not None else None
    role_label = getattr(profile, "role_label", None) if profile is not None else None
    return CapabilityContext(
        capabilities=effective_capabilities(capabilities, operator_capabilities, is_operator_view),
        role_label=role_label,
        is_operator_view=is_operator_view,
    )


def _hidden_rule(rule: Any) -> bool:
    if rule is None:
        return False
    if isinstance(rule, Mapping):
        return rule.get("visible") is False
    return getattr(rule, "visible", None) is False


def vetoing_key(capabilities: Mapping[str, Any] | None, identifier: str) -> str | None:
    if not capabilities:
        return None
    if _hidden_rule(capabilities.get(identifier)):
        return identifier
    for key in iter_ancestors(identifier):
        if _hidden_rule(capabilities.get(key)):
            return key
    return None


def _record_denial(context: CapabilityContext, identifier: str, *, action: str, reason: str, key: str | None = None) -> None:
    increment_counter("capability_denied_total", action=action, reason=reason)
    if identifier in get_trace_capability_ids():
        logger.info(
            "capability_denied capability=%s action=%s reason=%s key=%s role=%s operator_view=%s",
            identifier,
            action,
            reason,
            key or "-",
            context.role_label or "-",
            context.is_operator_view,
        )


def can_view_field(context: CapabilityContext, identifier: str) -> bool:
    if context.bypasses_checks:
        return True

    veto = vetoing_key(context.capabilities, identifier)
    if veto is not None:
        reason = "explicit" if veto == identifier else "ancestor"
        _record_denial(context, identifier, action="view", reason=reason, key=veto)
        return False

    allowed = can_view(
        context.capabilities,
        identifier,
        context.is_operator_view,
        context.is_operator,
    )
    if not allowed:
        _record_denial(context, identifier, action="view", reason="unconfigured")
    return allowed


def can_edit_field(context: CapabilityContext, identifier: str) -> bool:
    if context.bypasses_checks:
        return True
    allowed = can_edit(context.capabilities, identifier)
    if not allowed:
        _record_denial(context, identifier, action="edit", reason="resolver")
    return allowed


def can_view_ingredient_column(context: CapabilityContext, column_id: str) -> bool:
    if not can_view_field(context, f"{INGREDIENT_COLUMN_PREFIX}{column_id}"):
        return False
    if column_id == "action":
        return can_view_field(context, INGREDIENT_ACTIONS_CAPABILITY)
    return True


def allowed_ingredient_columns(context: CapabilityContext) -> list[str]:
    return [
        column_id
        for column_id in INGREDIENT_COLUMN_IDS
        if can_view_field(context, f"{INGREDIENT_COLUMN_PREFIX}{column_id}")
    ]
