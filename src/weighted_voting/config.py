"""Runtime configuration, read from the environment and an optional .env file.

    WV_ADMIN                      administrator identity (needed to initialise)
    WV_DATA_DIR                   directory for state.json / events.jsonl
    WV_STRICT_PHASE_TRANSITIONS   reject re-entering the current phase (true)
    WV_LOG_LEVEL                  diagnostic log level (WARNING)
    WV_LOCK_TIMEOUT               seconds to wait for the data directory lock (10)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATA_DIR = Path("data")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_seconds(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class VotingConfig:
    admin: Optional[str] = None
    data_dir: Path = DEFAULT_DATA_DIR
    strict_phase_transitions: bool = True
    log_level: str = "WARNING"
    lock_timeout: float = 10.0

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @property
    def events_path(self) -> Path:
        return self.data_dir / "events.jsonl"

    @property
    def lock_path(self) -> Path:
        return self.data_dir / ".lock"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> VotingConfig:
        """Build a config from the process environment.

        Values already set in the environment take precedence over the
        .env file.
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        admin = os.getenv("WV_ADMIN") or None
        data_dir = os.getenv("WV_DATA_DIR")
        return cls(
            admin=admin.strip() if admin else None,
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            strict_phase_transitions=_parse_bool(
                "WV_STRICT_PHASE_TRANSITIONS",
                os.getenv("WV_STRICT_PHASE_TRANSITIONS"),
                True,
            ),
            log_level=(os.getenv("WV_LOG_LEVEL") or "WARNING").strip().upper(),
            lock_timeout=_parse_seconds(
                "WV_LOCK_TIMEOUT", os.getenv("WV_LOCK_TIMEOUT"), 10.0,
            ),
        )
