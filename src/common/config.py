"""YAML + environment configuration for the trend radar jobs."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, TypeVar

import yaml
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

T = TypeVar("T")

# Config directory relative to the repository root
CONFIG_DIR = Path(__file__).resolve().parents[2] / "configs"

CONFIG_ENV_VAR = "TREND_RADAR_CONFIG"

# Hard per-commit operation limit of the backing store
STORE_OPERATION_LIMIT = 500


@dataclass
class CategorizerConfig:
    """Configuration for the trend categorizer."""

    model: str = "gpt-4o-mini"
    timeout_seconds: float = 20.0
    delay_seconds: float = 0.2
    validate_categories: bool = True

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"categorizer.timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.delay_seconds < 0:
            raise ValueError(f"categorizer.delay_seconds must not be negative, got {self.delay_seconds}")


@dataclass
class StoreConfig:
    """Configuration for persistence and retention."""

    max_batch_operations: int = 490
    retention_days: int = 30

    def __post_init__(self) -> None:
        if not 1 <= self.max_batch_operations <= STORE_OPERATION_LIMIT:
            raise ValueError(
                f"store.max_batch_operations must be between 1 and {STORE_OPERATION_LIMIT}, "
                f"got {self.max_batch_operations}"
            )
        if self.retention_days < 1:
            raise ValueError(f"store.retention_days must be at least 1, got {self.retention_days}")


@dataclass
class ForecastConfig:
    """Configuration for weekly forecast generation."""

    model: str = "gpt-4o-mini"
    history_limit: int = 20


@dataclass
class TrendRadarConfig:
    sources: list[str] = field(default_factory=lambda: ["tiktok", "instagram", "youtube"])
    source_timeout_seconds: float = 30.0
    categorizer: CategorizerConfig = field(default_factory=CategorizerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    forecasts: ForecastConfig = field(default_factory=ForecastConfig)

    # Environment-provided settings
    openai_api_key: str | None = None
    database_url: str | None = None

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError("At least one source must be configured")
        if self.source_timeout_seconds <= 0:
            raise ValueError(
                f"source_timeout_seconds must be positive, got {self.source_timeout_seconds}"
            )


def _section(data: dict, name: str) -> dict:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return value


def resolve_config_path(name: str | None = None) -> Path:
    """Resolve a config name (e.g. 'prod') or path to a YAML file path.

    Falls back to the TREND_RADAR_CONFIG environment variable, then 'prod'.
    """
    if name is None:
        name = os.environ.get(CONFIG_ENV_VAR, "prod")

    if "/" in name or name.endswith(".yaml") or name.endswith(".yml"):
        config_path = Path(name)
    else:
        config_path = CONFIG_DIR / f"{name}.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path


def parse_config(data: dict) -> TrendRadarConfig:
    """Build a TrendRadarConfig from parsed YAML data plus the environment."""
    categorizer = _section(data, "categorizer")
    store = _section(data, "store")
    forecasts = _section(data, "forecasts")

    return TrendRadarConfig(
        sources=list(data.get("sources") or ["tiktok", "instagram", "youtube"]),
        source_timeout_seconds=float(data.get("source_timeout_seconds", 30.0)),
        categorizer=CategorizerConfig(
            model=categorizer.get("model", "gpt-4o-mini"),
            timeout_seconds=float(categorizer.get("timeout_seconds", 20.0)),
            delay_seconds=float(categorizer.get("delay_seconds", 0.2)),
            validate_categories=bool(categorizer.get("validate_categories", True)),
        ),
        store=StoreConfig(
            max_batch_operations=int(store.get("max_batch_operations", 490)),
            retention_days=int(store.get("retention_days", 30)),
        ),
        forecasts=ForecastConfig(
            model=forecasts.get("model", "gpt-4o-mini"),
            history_limit=int(forecasts.get("history_limit", 20)),
        ),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        database_url=os.getenv("DATABASE_URL") or None,
    )


def load_config(name: str | None = None) -> TrendRadarConfig:
    """Load config by name (e.g., 'test' or 'prod') or path to a YAML file."""
    config_path = resolve_config_path(name)
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    return parse_config(data)


class ConfigSingleton(Generic[T]):
    """Get/set/reset holder for the process-wide config used by CLIs."""

    def __init__(self, loader: Callable[[], T] | None = None):
        self._config: T | None = None
        self._loader = loader

    def get(self) -> T:
        """Get the config, loading it lazily if needed."""
        if self._config is None:
            if self._loader is None:
                raise RuntimeError("No config loaded and no loader set")
            self._config = self._loader()
        return self._config

    def set(self, config: T) -> None:
        """Set the config directly."""
        self._config = config

    def reset(self) -> None:
        """Reset the config, forcing reload on next get()."""
        self._config = None


_manager: ConfigSingleton[TrendRadarConfig] = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
