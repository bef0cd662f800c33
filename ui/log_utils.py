"""Shared logging utilities."""

import json
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

SENSITIVE_HEADER_MARKERS = ("key", "authorization", "cookie", "token")

# Single writer keeps file appends ordered and off the event loop
_log_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="log-writer")


def submit_log(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
    """Run a log writer in the background."""
    return _log_executor.submit(func, *args, **kwargs)


def shutdown_log_executor() -> None:
    """Flush pending log writes."""
    _log_executor.shutdown(wait=True)


def write_incoming_log(
    method: str,
    path: str,
    headers: dict[str, str],
    body: Any,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single incoming request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "path": path,
        "headers": _redact_headers(headers),
        "body": body,
    }
    return _write_json(log_root / "incoming", payload)


def write_exchange_log(
    method: str,
    target: str,
    status: int,
    kind: str,
    *,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single proxied exchange log entry, grouped by target host."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "target": target,
        "status": status,
        "kind": kind,
    }
    return _write_json(_host_folder(log_root / "exchanges", target), payload)


def write_cli_log(
    level: str,
    message: str,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    CLI_LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with CLI_LOG_FILE.open("a") as f:
        f.write(line)


def clear_logs(log_root: Path = LOG_ROOT) -> int:
    """Remove JSON logs left over from a previous run."""
    deleted = 0
    for old_file in log_root.glob("**/*.json"):
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _host_folder(base: Path, target: str) -> Path:
    host = _extract_host(target)
    if host:
        return base / host
    return base


def _extract_host(target: str) -> str | None:
    _, sep, rest = target.partition("://")
    if not sep:
        return None
    host = rest.split("/", 1)[0].split("?", 1)[0]
    # Keep folder names filesystem-safe
    host = "".join(c if c.isalnum() or c in ".-" else "_" for c in host)
    return host or None


def _redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        if any(marker in key.lower() for marker in SENSITIVE_HEADER_MARKERS):
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
