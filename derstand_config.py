import os
from dataclasses import dataclass

from dotenv import load_dotenv

from derstand import TAPE_SIZE, DerstandError

DEFAULT_TRACE_STEPS = 100

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(DerstandError, ValueError):
    pass


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be at least {minimum}, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got {raw!r}")


@dataclass
class DerstandConfig:
    tape_size: int = TAPE_SIZE
    show_timing: bool = True
    # Step cap for the tracing debugger only
    trace_steps: int = DEFAULT_TRACE_STEPS

    @classmethod
    def from_env(cls) -> "DerstandConfig":
        """Build a config from DERSTAND_* variables, reading .env first."""
        load_dotenv()
        return cls(
            tape_size=_env_int("DERSTAND_TAPE_SIZE", TAPE_SIZE),
            show_timing=_env_bool("DERSTAND_SHOW_TIMING", True),
            trace_steps=_env_int("DERSTAND_TRACE_STEPS", DEFAULT_TRACE_STEPS),
        )
