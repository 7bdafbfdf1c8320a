"""Configuration loading for the movie network explorer."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class SourceConfig(BaseModel):
    base_url: str = "http://127.0.0.1:5000/api"
    timeout: float = 10.0
    user_agent: str = "movienet/0.1"


class BuilderConfig(BaseModel):
    max_depth: int = Field(default=3, ge=1)
    max_movies_per_level: int = Field(default=5, ge=1)
    request_delay: float = Field(default=0.1, ge=0.0)  # seconds between expanded nodes


class ExplorerConfig(BaseModel):
    max_movies_per_level: int = Field(default=5, ge=1)
    detail_batch_size: int = Field(default=10, ge=1)
    default_color_mode: str = "depth"


class Config(BaseModel):
    db_path: str = "data/movienet.db"
    default_seed: str = "The Dark Knight"
    output_file: str = "movie_network.html"
    source: SourceConfig = Field(default_factory=SourceConfig)
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)

    @property
    def resolved_db_path(self) -> Path:
        """Resolve db_path relative to project root."""
        p = Path(self.db_path)
        if p.is_absolute():
            return p
        return _project_root() / p


def _project_root() -> Path:
    """Return the movienet project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
