"""Capability resolver.

A capability map assigns ``{visible, editable}`` rules to dotted identifiers
such as ``recipe.ingredients.automatch``. A rule stored at a prefix covers
every identifier below it; the most specific rule found wins.

Three map states behave differently:

* ``None``: nothing loaded yet, everything is allowed.
* ``{}``: explicit empty map, operators see nothing and nobody edits.
* non-empty: opt-in mode, identifiers without a rule at any level are denied.

Every function here is pure and never raises.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CapabilityRule:
    visible: bool = True
    editable: bool = True

    def to_dict(self) -> dict[str, bool]:
        return {"visible": self.visible, "editable": self.editable}


# legacy boolean, normalized rule, or the stored {visible, editable} object
RawRule = bool | CapabilityRule | Mapping[str, Any]
CapabilityMap = Mapping[str, RawRule]

DEFAULT_RULE = CapabilityRule(visible=True, editable=True)


def iter_ancestors(identifier: str) -> Iterator[str]:
    key = identifier
    while "." in key:
        key = key.rsplit(".", 1)[0]
        yield key


def _rule_field(rule: RawRule, name: str) -> Any:
    if isinstance(rule, CapabilityRule):
        return getattr(rule, name)
    if isinstance(rule, Mapping):
        return rule.get(name)
    return None


def _lookup(capabilities: CapabilityMap | None, identifier: str) -> tuple[str, RawRule] | None:
    if not capabilities or not identifier:
        return None
    for key in (identifier, *iter_ancestors(identifier)):
        candidate = capabilities.get(key)
        if candidate is not None:
            return key, candidate
    return None


def find_rule(capabilities: CapabilityMap | None, identifier: str) -> RawRule | None:
    hit = _lookup(capabilities, identifier)
    return hit[1] if hit else None


def normalize_rule(rule: RawRule | None) -> CapabilityRule:
    if rule is None:
        return DEFAULT_RULE
    if isinstance(rule, CapabilityRule):
        return rule
    # legacy plain boolean
    if isinstance(rule, bool):
        return CapabilityRule(visible=rule, editable=rule)

    raw_visible = _rule_field(rule, "visible")
    raw_editable = _rule_field(rule, "editable")
    visible = raw_visible if isinstance(raw_visible, bool) else DEFAULT_RULE.visible
    if isinstance(raw_editable, bool):
        editable = raw_editable
    elif isinstance(raw_visible, bool):
        editable = raw_visible
    else:
        editable = DEFAULT_RULE.editable
    return CapabilityRule(visible=visible, editable=editable)


def can_view(
    capabilities: CapabilityMap | None,
    identifier: str,
    is_operator_view_active: bool = False,
    is_operator: bool = False,
) -> bool:
    if capabilities is None:
        return DEFAULT_RULE.visible
    if len(capabilities) == 0:
        if is_operator_view_active or is_operator:
            return False
        return DEFAULT_RULE.visible

    rule = find_rule(capabilities, identifier)
    if rule is None:
        return False
    return normalize_rule(rule).visible


def can_edit(capabilities: CapabilityMap | None, identifier: str) -> bool:
    # Operator flags are deliberately not consulted here.
    if capabilities is None:
        return DEFAULT_RULE.visible and DEFAULT_RULE.editable
    if len(capabilities) == 0:
        return False

    rule = find_rule(capabilities, identifier)
    if rule is None:
        return False
    normalized = normalize_rule(rule)
    return normalized.visible and normalized.editable


def get_capability_rule(capabilities: CapabilityMap | None, identifier: str) -> CapabilityRule:
    return normalize_rule(find_rule(capabilities, identifier))


def matched_rule_key(capabilities: CapabilityMap | None, identifier: str) -> str | None:
    hit = _lookup(capabilities, identifier)
    return hit[0] if hit else None
