"""
Configuration file parser for the OData MCP router.

This module handles reading and parsing JSON configuration files.
"""
import json
from pathlib import Path
from typing import Any

from odata_mcp.core.config import GenerationOptions, NamespaceConfig, ServerConfig
from odata_mcp.core.errors import ConfigurationError


# JSON key -> GenerationOptions field
_GENERATION_KEYS: dict[str, str] = {
    'generateCrudTools': 'generate_crud_tools',
    'generateQueryTools': 'generate_query_tools',
    'generateNavigationTools': 'generate_navigation_tools',
    'generateOperationTools': 'generate_operation_tools',
    'includeExamples': 'include_examples',
    'maxToolCount': 'max_tool_count',
    'namingPattern': 'naming_pattern',
    'namingConvention': 'naming_convention',
    'toolNamePrefix': 'tool_name_prefix',
    'toolNameSuffix': 'tool_name_suffix',
    'includeEntityTypes': 'include_entity_types',
    'excludeEntityTypes': 'exclude_entity_types',
    'excludeBinaryFields': 'exclude_binary_fields',
    'toolVersion': 'tool_version',
}


def load_config(config_path: str | Path) -> ServerConfig:
    """
    Load and parse configuration from a JSON file.

    Relative metadata file paths are resolved against the directory holding
    the configuration file; URLs are left as they are.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed ServerConfig object

    Raises:
        ConfigurationError: If config file is missing, malformed, or invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_dict = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file: {e}")

    config = parse_config(config_dict)

    for namespace in config.namespaces.values():
        if (namespace.metadata and '://' not in namespace.metadata
                and not Path(namespace.metadata).is_absolute()):
            namespace.metadata = str(config_path.parent / namespace.metadata)

    return config


def parse_config(config_dict: dict[str, Any]) -> ServerConfig:
    """
    Parse configuration dictionary into ServerConfig object.

    Args:
        config_dict: Configuration dictionary from JSON

    Returns:
        Parsed ServerConfig object

    Raises:
        ConfigurationError: If the structure is invalid or a value fails validation
    """
    try:
        return _parse_config(config_dict)
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid configuration structure: {e}")


def parse_generation_options(generation_dict: dict[str, Any]) -> GenerationOptions:
    """
    Parse the 'generation' section into GenerationOptions.

    Raises:
        ValueError: If a value fails validation
        KeyError: If an unknown key is present
        TypeError: If the section is not a dictionary
    """
    if not isinstance(generation_dict, dict):
        raise TypeError("'generation' must be a dictionary")

    kwargs: dict[str, Any] = {}
    for key, value in generation_dict.items():
        if key not in _GENERATION_KEYS:
            raise KeyError(f"Unknown generation option '{key}'")
        kwargs[_GENERATION_KEYS[key]] = value

    return GenerationOptions(**kwargs)


def _parse_config(config_dict: dict[str, Any]) -> ServerConfig:
    if not isinstance(config_dict, dict):
        raise TypeError("Configuration must be a JSON object")

    if 'namespaces' not in config_dict:
        raise KeyError("Configuration must contain 'namespaces' key")

    namespaces_dict = config_dict['namespaces']

    if not isinstance(namespaces_dict, dict):
        raise TypeError("'namespaces' must be a dictionary")

    if not namespaces_dict:
        raise ValueError("'namespaces' must contain at least one namespace")

    generation = GenerationOptions()
    if 'generation' in config_dict:
        generation = parse_generation_options(config_dict['generation'])

    namespaces: dict[str, NamespaceConfig] = {}

    for name, namespace_dict in namespaces_dict.items():
        if not isinstance(namespace_dict, dict):
            raise TypeError(f"Configuration for '{name}' must be a dictionary")

        if 'prefix' not in namespace_dict:
            raise ValueError(f"'prefix' is required for namespace '{name}'")

        prefix = namespace_dict['prefix']
        if not isinstance(prefix, str):
            raise TypeError(f"'prefix' for namespace '{name}' must be a string")

        # Validation happens in __post_init__
        namespaces[name] = NamespaceConfig(
            prefix=prefix,
            metadata=namespace_dict.get('metadata'),
            metadata_text=namespace_dict.get('metadataText'),
            mount_path=namespace_dict.get('mountPath'),
            description=namespace_dict.get('description'),
        )

    return ServerConfig(namespaces=namespaces, generation=generation)
