"""
Search configuration system.
Describes the collection's field vocabulary and how the pipeline is shaped,
loaded from YAML or taken from defaults.
"""

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from movie_search.exceptions import ConfigurationError
from movie_search.models.schemas import MAX_CANDIDATE_POOL_SIZE
from movie_search.utils.logger import LoggerMixin


class SearchConfiguration(BaseModel):
    """Field vocabulary and pipeline shaping for movie search."""
    # Document field paths targeted by each filter
    genres_field: str = Field(default="genres")
    year_field: str = Field(default="year")
    rating_field: str = Field(default="imdb.rating")
    cast_field: str = Field(default="cast")

    # Fields declared as "filter" in the Atlas vector index. Constraints on
    # these run inside $vectorSearch; everything else is a post-filter.
    inline_filter_fields: List[str] = Field(default_factory=list)

    cast_preview_size: int = Field(default=3, ge=0)
    default_result_limit: int = Field(default=5, ge=1)
    default_candidate_pool_size: int = Field(default=150, ge=1, le=MAX_CANDIDATE_POOL_SIZE)

    @model_validator(mode="after")
    def defaults_are_consistent(self):
        if self.default_result_limit > self.default_candidate_pool_size:
            raise ValueError("default_result_limit must not exceed default_candidate_pool_size")
        return self


class SearchConfigManager(LoggerMixin):
    """Manages search configuration loading and saving."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize the config manager."""
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[SearchConfiguration] = None

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> SearchConfiguration:
        """
        Load search configuration from a YAML file or use defaults.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            SearchConfiguration instance

        Raises:
            ConfigurationError: If the file exists but is not a valid configuration
        """
        if config_path:
            self.config_path = Path(config_path)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
                self._config = SearchConfiguration(**config_data)
            except (yaml.YAMLError, ValidationError, TypeError) as e:
                self.logger.error(f"Invalid search config in {self.config_path}: {e}")
                raise ConfigurationError(f"Invalid search config {self.config_path}: {e}") from e

            self.logger.info(f"Loaded search config from {self.config_path}")
        else:
            self.logger.info("No search config file found, using defaults")
            self._config = SearchConfiguration()

        return self._config

    def get_config(self) -> SearchConfiguration:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def save_config(self, config: SearchConfiguration, path: Optional[Union[str, Path]] = None) -> None:
        """
        Save configuration to a YAML file.

        Args:
            config: SearchConfiguration to save
            path: Optional path to save to, uses self.config_path if not provided
        """
        save_path = Path(path) if path else self.config_path
        if not save_path:
            raise ValueError("No save path specified")

        save_path.parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, 'w') as f:
            yaml.safe_dump(config.model_dump(mode='json'), f, default_flow_style=False, indent=2)

        self.logger.info(f"Saved search config to {save_path}")
