"""
Project configuration loading.

Reads the federation file of a project: the module federation settings
(name, exposes, remotes) plus the types plugin options.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from core.models.config import FederationTopology, ModuleFederationTypesOptions
from .defaults import FEDERATION_CONFIG_FILE, TYPES_PLUGIN_KEY

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a project federation file cannot be loaded"""
    pass


@dataclass(frozen=True)
class ProjectFederationConfig:
    """Everything a project declares about its federation"""
    path: Path
    topology: FederationTopology
    options: ModuleFederationTypesOptions
    output_path: Optional[Path] = None


class ConfigurationLoader:
    """Load project federation files with caching"""

    def __init__(self):
        self.config_cache: Dict[str, ProjectFederationConfig] = {}

    def find_config_file(self, project_path: Union[str, Path]) -> Path:
        """Resolve a project directory or file path to its federation file"""
        path = Path(project_path).resolve()
        if path.is_dir():
            path = path / FEDERATION_CONFIG_FILE
        if not path.exists():
            raise ConfigurationError(f"Federation config not found: {path}")
        return path

    def load(self, project_path: Union[str, Path]) -> ProjectFederationConfig:
        """Load or return the cached federation config for a project"""
        config_file = self.find_config_file(project_path)

        cache_key = str(config_file)
        if cache_key in self.config_cache:
            return self.config_cache[cache_key]

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {config_file}: {e}") from e

        config = self.parse(data, config_file)
        self.config_cache[cache_key] = config
        logger.info(f"Loaded federation config from {config_file}")
        return config

    def parse(self, data: Any, config_file: Path) -> ProjectFederationConfig:
        """Validate raw federation file data"""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Federation config must be a JSON object: {config_file}")

        data = dict(data)
        plugin_options = data.pop(TYPES_PLUGIN_KEY, None) or {}
        output_path = data.pop("outputPath", None)

        try:
            topology = FederationTopology(
                name=data.get("name"),
                exposes=data.get("exposes"),
                remotes=data.get("remotes"),
            )
            options = ModuleFederationTypesOptions.model_validate(plugin_options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid federation config in {config_file}: {e}") from e

        if output_path is not None:
            output_path = (config_file.parent / output_path).resolve()

        return ProjectFederationConfig(
            path=config_file.parent,
            topology=topology,
            options=options,
            output_path=output_path,
        )

    def clear_cache(self) -> None:
        """Clear configuration cache"""
        self.config_cache.clear()
        logger.debug("Configuration cache cleared")
