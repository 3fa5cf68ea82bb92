from __future__ import annotations

import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from nova_cloudctl.errors import ConfigurationError
from nova_cloudctl.sync.projection import VirtualMachineRecord

STATE_DIR = Path(".nova-cloudctl/state")


def new_snapshot_id() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{ts}-{secrets.token_hex(4)}"


def write_snapshot(
    name: str,
    records: Iterable[VirtualMachineRecord],
    state_dir: Optional[Path] = None,
) -> dict[str, Any]:
    snapshot = {
        "name": name,
        "snapshot_id": new_snapshot_id(),
        "synced_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "records": [r.model_dump() for r in records],
    }
    state_dir = state_dir or STATE_DIR
    state_dir.mkdir(parents=True, exist_ok=True)
    path = state_dir / f"{name}.json"
    path.write_text(json.dumps(snapshot, indent=2, sort_keys=True))
    return snapshot


def read_snapshot(name: str, state_dir: Optional[Path] = None) -> Optional[dict[str, Any]]:
    path = (state_dir or STATE_DIR) / f"{name}.json"
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"cannot read snapshot {path}: {e}", cause=e) from e
