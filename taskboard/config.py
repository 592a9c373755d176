# Task board configuration
# Override paths and endpoints via config.yaml, environment, or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields
from typing import Optional

from .errors import ConfigError

CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

# Environment variable -> Config field
ENV_OVERRIDES = {
    "TASKBOARD_DB": "db_path",
    "TASKBOARD_OWNER": "owner_id",
    "TASKBOARD_URL": "board_url",
    "TASKBOARD_API_SECRET": "api_secret",
    "TASKBOARD_SUMMARIZE_URL": "summarize_url",
    "OPENAI_API_KEY": "openai_api_key",
}


@dataclass
class Config:
    """Runtime configuration for the board server and clients."""

    # Storage
    db_path: str = "~/.local/share/taskboard/taskboard.db"
    owner_id: str = "local"
    board_url: str = ""          # remote board_server; empty means local SQLite

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    api_secret: str = ""
    log_level: str = "INFO"

    # Prioritize endpoint (client side)
    summarize_url: str = "http://127.0.0.1:3000/api/summarize"
    request_timeout: float = 10.0

    # Language model (server side)
    openai_api_key: str = ""
    openai_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 1000

    # Presentation
    celebration_secs: float = 2.0

    def resolve_paths(self):
        """Expand ~ in filesystem paths."""
        self.db_path = str(Path(self.db_path).expanduser())

    def apply_env(self, environ=None):
        """Let environment variables override file values."""
        environ = os.environ if environ is None else environ
        for env_name, attr in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                setattr(self, attr, value)

    def validate(self):
        try:
            self.port = int(self.port)
            self.request_timeout = float(self.request_timeout)
            self.celebration_secs = float(self.celebration_secs)
            self.openai_max_tokens = int(self.openai_max_tokens)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid numeric setting: {e}")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        if self.celebration_secs <= 0:
            raise ConfigError("celebration_secs must be positive")
        if not self.owner_id:
            raise ConfigError("owner_id must not be empty")

    @classmethod
    def load(cls, path: Optional[str] = None, environ=None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        cfg_path = Path(path) if path else CONFIG_PATH
        names = {f.name for f in fields(cls)}
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if k in names})
            except (OSError, yaml.YAMLError, AttributeError):
                cfg = cls()
        else:
            cfg = cls()
        cfg.apply_env(environ)
        cfg.resolve_paths()
        cfg.validate()
        return cfg
