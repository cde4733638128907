"""Shape an exception into the JSON payload sent to the collector."""

import platform
import secrets
import socket
import traceback
from datetime import datetime


def _error_code(exc: BaseException) -> int:
    for attr in ("errno", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


def _message(exc: BaseException) -> str:
    try:
        return str(exc)
    except Exception:
        return type(exc).__name__


def _frame_class(frame) -> str | None:
    try:
        local_vars = frame.f_locals
    except Exception:
        return None
    if "self" in local_vars:
        return type(local_vars["self"]).__qualname__
    if "cls" in local_vars and isinstance(local_vars["cls"], type):
        return local_vars["cls"].__qualname__
    return None


def format_trace(exc: BaseException) -> list[dict]:
    """Traceback frames, innermost first."""
    frames = [
        {
            "file": frame.f_code.co_filename,
            "line": lineno,
            "function": frame.f_code.co_name,
            "class": _frame_class(frame),
        }
        for frame, lineno in traceback.walk_tb(exc.__traceback__)
    ]
    frames.reverse()
    return frames


def format_exception(exc: BaseException, project: str = "unknown-project",
                     context: dict | None = None) -> dict:
    trace = format_trace(exc)
    origin = trace[0] if trace else {"file": "", "line": 0}
    try:
        hostname = socket.gethostname() or "unknown"
    except OSError:
        hostname = "unknown"
    return {
        "uuid": secrets.token_hex(8),
        "project": project,
        "level": "error",
        "timestamp": datetime.now().astimezone().isoformat(timespec="seconds"),
        "message": _message(exc),
        "code": _error_code(exc),
        "file": origin["file"],
        "line": origin["line"],
        "trace": trace,
        "context": dict(context or {}),
        "server": {
            "hostname": hostname,
            "ip": "/",
            "python_version": platform.python_version(),
        },
    }
