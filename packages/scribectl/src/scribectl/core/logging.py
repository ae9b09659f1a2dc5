from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from .context import RunContext

_WRITE_LOCK = threading.Lock()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def log_event(
    ctx: RunContext,
    level: str,
    component: str,
    action: str,
    stream: TextIO | None = None,
    **fields: object,
) -> None:
    payload = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": ctx.run_id,
        "component": component,
        "action": action,
        **fields,
    }
    out = stream or sys.stderr
    if ctx.log_json:
        line = json.dumps(payload, sort_keys=True, default=str)
    else:
        core = f"ts={payload['ts']} level={level} run_id={ctx.run_id} component={component} action={action}"
        extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        line = core if not extras else f"{core} {extras}"
    with _WRITE_LOCK:
        out.write(line + "\n")
        out.flush()
