import re
from collections import defaultdict
from threading import Lock

_metrics_lock = Lock()
_counters: dict[str, dict[tuple[tuple[str, str], ...], int]] = defaultdict(dict)

METRIC_DESCRIPTIONS: dict[str, str] = {
    "capability_denied_total": "Capability checks denied by the view/edit policy.",
    "capability_guard_total": "Request guard decisions per capability.",
}


def _label_key(labels: dict[str, str] | None) -> tuple[tuple[str, str], ...]:
    if not labels:
        return tuple()
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def increment_counter(name: str, value: int = 1, **labels: str) -> None:
    key = _label_key(labels)
    with _metrics_lock:
        bucket = _counters[name]
        bucket[key] = bucket.get(key, 0) + int(value)


def counter_value(name: str, **labels: str) -> int:
    with _metrics_lock:
        return _counters.get(name, {}).get(_label_key(labels), 0)


def snapshot_metrics() -> dict[str, list[dict]]:
    with _metrics_lock:
        return {
            metric_name: [
                {"labels": dict(label_key), "value": value}
                for label_key, value in items.items()
            ]
            for metric_name, items in _counters.items()
        }


def reset_metrics() -> None:
    with _metrics_lock:
        _counters.clear()


def _sanitize_metric_name(name: str) -> str:
    clean = re.sub(r"[^a-zA-Z0-9_:]", "_", name)
    if not re.match(r"^[a-zA-Z_:]", clean):
        clean = f"metric_{clean}"
    return clean


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def prometheus_text() -> str:
    lines: list[str] = []
    with _metrics_lock:
        for raw_name, items in sorted(_counters.items()):
            name = _sanitize_metric_name(raw_name)
            help_text = METRIC_DESCRIPTIONS.get(raw_name)
            if help_text:
                lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} counter")
            for label_key, value in sorted(items.items()):
                if label_key:
                    labels = ",".join(f'{k}="{_escape_label_value(v)}"' for k, v in label_key)
                    lines.append(f"{name}{{{labels}}} {int(value)}")
                else:
                    lines.append(f"{name} {int(value)}")
    return "\n".join(lines) + "\n"
