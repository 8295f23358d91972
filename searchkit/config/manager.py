"""
Configuration management for searchkit.

Configuration is read from a main TOML file, optionally merged with every
``*.toml`` found (recursively, in sorted order) in extra config directories.
``${VAR_NAME}`` placeholders are substituted from the environment, which is
seeded from a ``.env`` file if there is one.

Example config.toml:

    [client]
    app-id = "${SEARCH_APP_ID}"
    api-key = "${SEARCH_API_KEY}"
    read-hosts = ["app-dsn.search.example.net", "app-1.search.example.net"]
    write-hosts = ["app.search.example.net", "app-1.search.example.net"]
    timeout = 30
    search-timeout = 5

    [cache]
    enabled = true
    ttl = 120
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

from .. import utils
from ..cache import DEFAULT_TTL
from ..dispatch import ConfigurationError

logger = logging.getLogger(__name__)


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholder with its value, keeping the placeholder if unset."""
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ``${VAR_NAME}`` placeholders in strings, dicts and lists.

    Args:
        value: Configuration value of any type

    Returns:
        New value with placeholders replaced, non-string scalars unchanged
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Loads and validates searchkit configuration."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """
        Raises:
            ConfigurationError: If no configuration source exists or a file can not be parsed
        """
        self.configPath = configPath
        self.configDirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config: Dict[str, Any] = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping, dood!")
            return tomlFiles

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping, dood!")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, later values win."""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    @staticmethod
    def _loadTomlFile(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigurationError(f"Failed to load config file {path}: {e}") from e

    def _loadConfig(self) -> Dict[str, Any]:
        """Load the main config file and merge config directories into it."""
        configFile = Path(self.configPath)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.configDirs:
            raise ConfigurationError(f"Configuration file {self.configPath} not found")

        config: Dict[str, Any] = {}
        if hasConfigFile:
            config = self._loadTomlFile(configFile)
            logger.info(f"Loaded main config from {self.configPath}")

        for configDir in self.configDirs:
            tomlFiles = self._findTomlFilesRecursive(configDir)
            logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

            for tomlFile in tomlFiles:
                config = self._mergeConfigs(config, self._loadTomlFile(tomlFile))
                logger.info(f"Merged config from {tomlFile}")

        logger.debug("Configuration loaded and merged successfully, dood!")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getClientConfig(self) -> Dict[str, Any]:
        """
        Get search client configuration.

        Returns:
            Dict with app-id, api-key, read-hosts, write-hosts and optional
            timeout, search-timeout, retry-backoff-factor

        Raises:
            ConfigurationError: If credentials or hosts are missing
        """
        clientConfig = self.get("client", {})
        for key in ("app-id", "api-key"):
            value = clientConfig.get(key)
            # Unset environment variables leave the placeholder behind
            if not value or (isinstance(value, str) and value.startswith("${")):
                raise ConfigurationError(f"Please set client.{key} in the configuration")
        for key in ("read-hosts", "write-hosts"):
            if not clientConfig.get(key):
                raise ConfigurationError(f"client.{key} must list at least one host")
        return clientConfig

    def getCacheConfig(self) -> Dict[str, Any]:
        """
        Get search cache configuration.

        Returns:
            Dict with ``enabled`` (default False), ``ttl`` (default 120) and
            ``max-size`` (default None)
        """
        cacheConfig = self.get("cache", {})
        return {
            "enabled": bool(cacheConfig.get("enabled", False)),
            "ttl": cacheConfig.get("ttl", DEFAULT_TTL),
            "max-size": cacheConfig.get("max-size", None),
        }

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})
