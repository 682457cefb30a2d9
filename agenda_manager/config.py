# Agenda manager: configuration
# Override via agenda.yaml, environment variables, or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

from .notifications import DEFAULT_TTL
from .schema import AgendaError
from .storage import DEFAULT_DB

CONFIG_PATH = Path(__file__).parent.parent / "agenda.yaml"


class ConfigError(AgendaError):
    """Raised when configuration is invalid."""
    pass


@dataclass
class AgendaConfig:
    """Runtime configuration for the agenda server."""

    # Storage (slots and backend tables share one SQLite file)
    db_path: str = str(DEFAULT_DB)

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3000
    api_secret_env: str = "AGENDA_API_SECRET"

    # Behavior
    notification_ttl: float = DEFAULT_TTL
    log_level: str = "INFO"

    @property
    def api_secret(self) -> str:
        return os.environ.get(self.api_secret_env, "").strip()

    def validate(self):
        try:
            self.port = int(self.port)
            self.notification_ttl = float(self.notification_ttl)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}")
        if self.notification_ttl <= 0:
            raise ConfigError(f"notification_ttl must be positive, got {self.notification_ttl}")

    def resolve_paths(self):
        """Expand ~ and apply the AGENDA_DB override."""
        env_db = os.environ.get("AGENDA_DB")
        if env_db:
            self.db_path = env_db
        self.db_path = str(Path(self.db_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "AgendaConfig":
        """Load config from YAML, falling back to defaults if absent or unreadable."""
        cfg_path = Path(path or os.environ.get("AGENDA_CONFIG") or CONFIG_PATH)
        known = {f.name for f in fields(cls)}
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in known})
            except (OSError, yaml.YAMLError, TypeError, AttributeError):
                cfg = cls()
        else:
            cfg = cls()
        cfg.resolve_paths()
        cfg.validate()
        return cfg
