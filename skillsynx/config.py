"""Load pipeline settings from config/settings.yaml and the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

from skillsynx.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
DATA_DIR: Path = ROOT_DIR / "data"
REPORTS_DIR: Path = ROOT_DIR / "reports"

DEFAULT_ROLE = "General Role"


@dataclass
class Settings:
    api_key: str = ""
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.3
    max_tokens: int = 2000
    timeout: float = 60.0
    max_attempts: int = 1
    retry_base_delay: float = 2.0
    resume_char_limit: int = 4000
    summary_char_limit: int = 500
    job_count: int = 6
    default_role: str = DEFAULT_ROLE
    data_dir: Path = field(default_factory=lambda: DATA_DIR)

    def validate(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.job_count < 1:
            raise ValueError(f"job_count must be >= 1, got {self.job_count}")
        if self.resume_char_limit < 1:
            raise ValueError(f"resume_char_limit must be >= 1, got {self.resume_char_limit}")
        if self.summary_char_limit < 1:
            raise ValueError(f"summary_char_limit must be >= 1, got {self.summary_char_limit}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


# Environment variable -> Settings field
_ENV_KEYS: dict[str, str] = {
    "GROQ_API_KEY": "api_key",
    "GROQ_LLM_MODEL": "model",
    "ORACLE_BASE_URL": "base_url",
    "ORACLE_TIMEOUT": "timeout",
    "ORACLE_MAX_ATTEMPTS": "max_attempts",
    "ORACLE_RETRY_DELAY": "retry_base_delay",
    "SKILLSYNX_DATA_DIR": "data_dir",
}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _resolve_path(value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else ROOT_DIR / path


def _caster(name: str) -> Callable[[Any], Any]:
    default = Settings.__dataclass_fields__[name].type
    return {
        "int": int,
        "float": float,
        "Path": _resolve_path,
    }.get(default, str)


def _coerce(name: str, value: Any, source: str) -> Any:
    try:
        return _caster(name)(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {name} in {source}: {value!r}") from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the top level")

    # Sections are a readability aid only; keys are flattened.
    flat: dict[str, Any] = {}
    for section in ("oracle", "pipeline", "storage"):
        flat.update(data.get(section) or {})
    flat.update({k: v for k, v in data.items() if k not in ("oracle", "pipeline", "storage")})
    return flat


def load_settings(path: Path | None = None) -> Settings:
    """Defaults, then settings.yaml, then environment variables."""
    path = path or SETTINGS_PATH
    known = {f.name for f in fields(Settings)}
    values: dict[str, Any] = {}

    if path.exists():
        for key, value in _load_yaml(path).items():
            if key not in known:
                log.warning("Ignoring unknown setting %r in %s", key, path.name)
                continue
            if key == "api_key":
                log.warning("api_key in %s is ignored — set GROQ_API_KEY in .env", path.name)
                continue
            values[key] = _coerce(key, value, path.name)

    for env_key, name in _ENV_KEYS.items():
        raw = get_env(env_key)
        if raw:
            values[name] = _coerce(name, raw, env_key)

    settings = Settings(**values)
    settings.validate()
    return settings


def ensure_dirs(settings: Settings | None = None) -> None:
    data_dir = settings.data_dir if settings else DATA_DIR
    for d in (REPORTS_DIR, data_dir):
        d.mkdir(parents=True, exist_ok=True)
