"""Minimal structured logging helper.

Emits one key=value line per event with a timestamp and level, so generation
runs can be grepped or parsed without configuring the stdlib logging tree.

Usage:
    from cavern.logging_utils import get_logger
    log = get_logger("cavern.dungeon")
    log.info(event="phase_done", phase="automata", ms=12)

Environment:
    CAVERN_LOG_LEVEL  debug|info|warn|error (default info)
    CAVERN_LOG_JSON   1/true/yes/on to emit one JSON object per line

Lines go to stderr so command output on stdout stays machine readable.
All non-numeric values are str()'d with spaces replaced. Reserved keys: level, ts.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}


def _current_level() -> int:
    return LEVELS.get(os.getenv("CAVERN_LOG_LEVEL", "info").lower(), 20)


def _json_mode() -> bool:
    return os.getenv("CAVERN_LOG_JSON", "0").lower() in ("1", "true", "yes", "on")


def _format(level: str, **fields) -> str:
    if _json_mode():
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = int(time.time())
        try:
            return json.dumps(rec, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return json.dumps({"level": level, "ts": int(time.time()), "error": "json_encode_failed"})
    parts = [f"level={level}", f"ts={int(time.time())}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, bool):
            parts.append(f"{k}={str(v).lower()}")
        elif isinstance(v, (int, float)):
            parts.append(f"{k}={v}")
        else:
            s = str(v).replace(" ", "_")
            parts.append(f"{k}={s}")
    return " ".join(parts)


class _Logger:
    def __init__(self, name: str | None = None):
        self.name = name or "cavern"

    def _log(self, lvl: str, **fields):
        if LEVELS[lvl] < _current_level():
            return
        if "logger" not in fields:
            fields["logger"] = self.name
        print(_format(lvl, **fields), file=sys.stderr)

    def is_enabled(self, lvl: str) -> bool:
        return LEVELS[lvl] >= _current_level()

    def debug(self, **fields):
        self._log("debug", **fields)

    def info(self, **fields):
        self._log("info", **fields)

    def warn(self, **fields):
        self._log("warn", **fields)

    def error(self, **fields):
        self._log("error", **fields)


_LOGGER_CACHE = {}


def get_logger(name: str):
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = _Logger(name)
    return _LOGGER_CACHE[name]


log = get_logger("cavern")
