from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_ENDPOINT = "https://api.amazonalexa.com"
DEFAULT_UPS_TIMEOUT_S = 5.0


class ConfigError(RuntimeError):
    pass


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class SkillConfig:
    stage: str
    skill_name: str
    # Used only when the request envelope does not carry an apiEndpoint.
    default_api_endpoint: str
    ups_timeout_s: float

    @property
    def is_dev(self) -> bool:
        return self.stage.lower() in ("dev", "local")


def load_config() -> SkillConfig:
    return SkillConfig(
        stage=os.getenv("STAGE", "dev"),
        skill_name=os.getenv("SKILL_NAME", "Survey"),
        default_api_endpoint=(os.getenv("UPS_API_ENDPOINT") or DEFAULT_API_ENDPOINT).rstrip("/"),
        ups_timeout_s=_float("UPS_TIMEOUT_S", DEFAULT_UPS_TIMEOUT_S),
    )


def load_local_env(env_file: Path | None = None) -> bool:
    """Load a .env.local file for local runs. Returns True if a file was loaded.

    Variables already present in the environment are not overridden.
    """
    from dotenv import load_dotenv

    path = env_file or Path.cwd() / ".env.local"
    if not path.exists():
        return False
    return bool(load_dotenv(path, override=False))
