"""Print how a stored role rule set resolves for every known capability.

Usage:
    python tools/check_role_capabilities.py role.json
    python tools/check_role_capabilities.py role.json --operator --xlsx report.xlsx
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from app.core.capability_map import admin_capabilities, parse_capabilities
from app.core.capability_report import REPORT_HEADER, build_capability_report, summarize_report
from app.core.export_utils import csv_bytes, xlsx_bytes
from app.core.roles import is_admin_role

logger = logging.getLogger("check_role_capabilities")


def _load_role(source: str) -> tuple[str, str]:
    stripped = source.lstrip()
    if stripped.startswith(("{", "[")):
        text = stripped
    else:
        text = Path(source).read_text(encoding="utf-8")
    payload = json.loads(text)
    if isinstance(payload, dict) and "capabilities" in payload:
        raw = payload["capabilities"]
        role_label = str(payload.get("role_label") or payload.get("roleLabel") or "")
    else:
        raw = payload
        role_label = ""
    if not isinstance(raw, str):
        raw = json.dumps(raw)
    return role_label, raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check capability resolution for a role.")
    parser.add_argument("source", help="Role JSON file or inline JSON text")
    parser.add_argument("--operator", action="store_true", help="Evaluate as a real operator")
    parser.add_argument("--operator-view", action="store_true", help="Evaluate in operator view mode")
    parser.add_argument("--only-denied", action="store_true", help="Print denied capabilities only")
    parser.add_argument("--csv", type=Path, help="Write the report as CSV")
    parser.add_argument("--xlsx", type=Path, help="Write the report as XLSX")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        role_label, raw = _load_role(args.source)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("role_load_failed source=%s error=%s", args.source, exc)
        return 2

    capabilities = admin_capabilities() if is_admin_role(role_label) else parse_capabilities(raw)
    rows = build_capability_report(
        capabilities,
        is_operator_view_active=args.operator_view,
        is_operator=args.operator,
    )

    for row in rows:
        if args.only_denied and row.can_view and row.can_edit:
            continue
        print(
            f"{row.capability:<50} view={'Y' if row.can_view else 'N'} "
            f"edit={'Y' if row.can_edit else 'N'} match={row.matched_key or '-'}"
        )

    summary = summarize_report(rows)
    print(
        f"role={role_label or '-'} rules={len(capabilities)} total={summary['total']} "
        f"visible={summary['visible']} editable={summary['editable']} unmatched={summary['unmatched']}"
    )

    table = [row.as_row() for row in rows]
    if args.csv:
        args.csv.write_bytes(csv_bytes(header=REPORT_HEADER, rows=table))
        logger.info("report_written format=csv path=%s", args.csv)
    if args.xlsx:
        args.xlsx.write_bytes(xlsx_bytes(sheet_name="Capabilities", header=REPORT_HEADER, rows=table))
        logger.info("report_written format=xlsx path=%s", args.xlsx)
    return 0


if __name__ == "__main__":
    sys.exit(main())
