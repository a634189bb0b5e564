# centralized configuration loader
# runs load_dotenv() to read .env
# process-wide knobs are read once at import; per-provider base URLs and keys
# are read through a ConfigSource on every call so a changed .env/env is picked up

import os
from typing import Mapping, Optional, Protocol
from dotenv import load_dotenv

load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw else None


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    return float(raw) if raw else None


# Provider selection (unset means the built-in default, deepseek)
DEFAULT_PROVIDER = os.getenv("DEFAULT_PROVIDER") or None

# HTTP timeouts (seconds)
CONNECT_TIMEOUT = float(os.getenv("CONNECT_TIMEOUT", "10"))
READ_TIMEOUT = float(os.getenv("READ_TIMEOUT", "120"))
LIST_TIMEOUT = float(os.getenv("LIST_TIMEOUT", "10"))

# Generation caps (unset -> backend default)
MAX_TOKENS = _optional_int("MAX_TOKENS")
TEMPERATURE = _optional_float("TEMPERATURE")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class ConfigSource(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...


class EnvConfigSource:
    """Reads the process environment on every lookup; blank values count as unset."""

    def get(self, key: str) -> Optional[str]:
        value = os.environ.get(key)
        return value or None


class MappingConfigSource:
    def __init__(self, values: Optional[Mapping[str, str]] = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key) or None
