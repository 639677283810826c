from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.core.capabilities import can_edit, can_view, get_capability_rule, matched_rule_key
from app.core.capability_tree import PERMISSION_TREE_LEAF_IDS, find_node

REPORT_HEADER = ["capability", "label", "matched_key", "rule_visible", "rule_editable", "can_view", "can_edit"]


@dataclass(frozen=True)
class CapabilityReportRow:
    capability: str
    label: str
    matched_key: str | None
    rule_visible: bool
    rule_editable: bool
    can_view: bool
    can_edit: bool

    def as_row(self) -> list[Any]:
        return [
            self.capability,
            self.label,
            self.matched_key or "-",
            self.rule_visible,
            self.rule_editable,
            self.can_view,
            self.can_edit,
        ]


def build_capability_report(
    capabilities: Mapping[str, Any] | None,
    identifiers: Iterable[str] | None = None,
    *,
    is_operator_view_active: bool = False,
    is_operator: bool = False,
) -> list[CapabilityReportRow]:
    rows: list[CapabilityReportRow] = []
    for identifier in identifiers if identifiers is not None else PERMISSION_TREE_LEAF_IDS:
        rule = get_capability_rule(capabilities, identifier)
        node = find_node(identifier)
        rows.append(
            CapabilityReportRow(
                capability=identifier,
                label=node.label if node else "",
                matched_key=matched_rule_key(capabilities, identifier),
                rule_visible=rule.visible,
                rule_editable=rule.editable,
                can_view=can_view(capabilities, identifier, is_operator_view_active, is_operator),
                can_edit=can_edit(capabilities, identifier),
            )
        )
    return rows


def summarize_report(rows: Iterable[CapabilityReportRow]) -> dict[str, int]:
    summary = {"total": 0, "visible": 0, "editable": 0, "unmatched": 0}
    for row in rows:
        summary["total"] += 1
        summary["visible"] += int(row.can_view)
        summary["editable"] += int(row.can_edit)
        summary["unmatched"] += int(row.matched_key is None)
    return summary
