"""Configuration loading and validation for context attachments.

This module handles loading chat_context.json / chat_context.yaml files,
validating their structure, and applying environment overrides.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import yaml
from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# Default maximum number of concurrently attached files
DEFAULT_FILE_LIMIT = 10

# Default sub-folder (of each workspace folder) holding instruction files
PROMPT_FILES_DEFAULT_LOCATION = [".chat/prompts"]

CONFIG_PATH_ENV_VAR = "CHAT_CONTEXT_CONFIG_PATH"
FILE_LIMIT_ENV_VAR = "CHAT_CONTEXT_FILE_LIMIT"


@dataclass
class AttachmentsConfig:
    """Structured representation of an attachments configuration file.

    Attributes:
        version: Config format version.
        file_limit: Maximum number of file attachments active at once.
        prompt_files_locations: Raw configured sub-folder value (a string, a
            list of strings, or None). See get_prompt_files_locations().
        instructions_enabled: Whether prompt instruction attachments are offered.
        config_base_path: Directory the config file was loaded from.
    """

    version: str = "1.0"
    file_limit: int = DEFAULT_FILE_LIMIT
    prompt_files_locations: Any = None
    instructions_enabled: bool = True
    config_base_path: Optional[str] = None

    def get_prompt_files_locations(self) -> List[str]:
        """Sub-folders to search for instruction files.

        Falls back to the default location when the value is absent, is
        neither a string nor a list, or has no string items.
        """
        value = self.prompt_files_locations

        if value is None:
            return list(PROMPT_FILES_DEFAULT_LOCATION)

        if isinstance(value, str):
            return [value] if value else list(PROMPT_FILES_DEFAULT_LOCATION)

        if not isinstance(value, (list, tuple)):
            logger.warning(
                "Ignoring prompt files location of type %s, using default",
                type(value).__name__,
            )
            return list(PROMPT_FILES_DEFAULT_LOCATION)

        result = [item for item in value if isinstance(item, str) and item]
        if not result:
            return list(PROMPT_FILES_DEFAULT_LOCATION)

        return result


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """Validate an attachments configuration dict.

    Args:
        config: Raw configuration dict loaded from JSON or YAML

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: List[str] = []

    version = config.get("version")
    if version and str(version) not in ("1.0", "1"):
        errors.append(f"Unsupported config version: {version}")

    file_limit = config.get("file_limit")
    if file_limit is not None:
        if isinstance(file_limit, bool) or not isinstance(file_limit, int) or file_limit < 0:
            errors.append("'file_limit' must be a non-negative integer")

    instructions = config.get("instructions", {})
    if not isinstance(instructions, dict):
        errors.append("'instructions' must be an object")
    else:
        enabled = instructions.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            errors.append("Instructions 'enabled' must be a boolean")

    return len(errors) == 0, errors


def parse_file_limit(value: Optional[str]) -> Optional[int]:
    """Parse a file limit override, None if absent or invalid."""
    if value is None or value == "":
        return None
    try:
        limit = int(value)
    except ValueError:
        logger.warning("Ignoring invalid %s value: %r", FILE_LIMIT_ENV_VAR, value)
        return None
    if limit < 0:
        logger.warning("Ignoring negative %s value: %r", FILE_LIMIT_ENV_VAR, value)
        return None
    return limit


def _read_environment(env_file: Optional[str]) -> Dict[str, Optional[str]]:
    env: Dict[str, Optional[str]] = dict(os.environ)
    if env_file:
        env.update(dotenv_values(env_file))
    return env


def _parse_config_file(config_path: Path) -> Dict[str, Any]:
    with open(config_path, 'r', encoding='utf-8') as f:
        if config_path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(f)
        else:
            raw = json.load(f)

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigValidationError([f"Config root must be an object: {config_path}"])
    return raw


def load_config(
    path: Optional[str] = None,
    env_var: str = CONFIG_PATH_ENV_VAR,
    env_file: Optional[str] = None,
) -> AttachmentsConfig:
    """Load and validate an attachments configuration file.

    Args:
        path: Direct path to config file. If None, uses env_var or defaults.
        env_var: Environment variable name for config path.
        env_file: Optional .env file whose values overlay os.environ.

    Returns:
        AttachmentsConfig instance

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigValidationError: If config validation fails
        json.JSONDecodeError / yaml.YAMLError: If the file cannot be parsed
    """
    env = _read_environment(env_file)

    if path is None:
        path = env.get(env_var) or None

    if path is None:
        default_paths = [
            Path.cwd() / "chat_context.json",
            Path.cwd() / "chat_context.yaml",
            Path.home() / ".config" / "chat_context" / "config.json",
        ]
        for default_path in default_paths:
            if default_path.exists():
                path = str(default_path)
                break

    if path is None:
        config = AttachmentsConfig()
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Attachments config file not found: {path}")

        raw_config = _parse_config_file(config_path)

        is_valid, errors = validate_config(raw_config)
        if errors:
            raise ConfigValidationError(errors)

        instructions = raw_config.get("instructions", {})
        config = AttachmentsConfig(
            version=str(raw_config.get("version", "1.0")),
            file_limit=raw_config.get("file_limit", DEFAULT_FILE_LIMIT),
            prompt_files_locations=instructions.get("locations"),
            instructions_enabled=instructions.get("enabled", True),
            config_base_path=str(config_path.parent.resolve()),
        )
        logger.debug("Loaded attachments config from %s", config_path)

    override = parse_file_limit(env.get(FILE_LIMIT_ENV_VAR))
    if override is not None:
        config.file_limit = override

    return config


def env_file_limit(
    config: AttachmentsConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> Callable[[], int]:
    """Build a file limit source that follows the environment.

    The returned callable re-reads CHAT_CONTEXT_FILE_LIMIT on every call,
    falling back to ``config.file_limit``, so a changed limit takes effect
    on the next admission decision.
    """
    source = os.environ if environ is None else environ

    def get_file_limit() -> int:
        override = parse_file_limit(source.get(FILE_LIMIT_ENV_VAR))
        return config.file_limit if override is None else override

    return get_file_limit
