"""Application configuration module for the PO validator."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Any

import yaml
from dotenv import load_dotenv

from po_validator.logging_config import setup_logger
from po_validator.models import (
    PROVIDER_ANTHROPIC,
    PROVIDER_OLLAMA,
    PROVIDER_OPENAI,
    ValidatorConfig
)

DEFAULT_BATCH_SIZE = 10

# Environment variable holding the API key of each hosted provider.
API_KEY_ENV_VARS = {
    PROVIDER_OPENAI: 'OPENAI_API_KEY',
    PROVIDER_ANTHROPIC: 'ANTHROPIC_API_KEY',
}


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    project_root: str

    # Validation settings
    validator_config: ValidatorConfig
    target_language: Optional[str]
    batch_size: int

    # Inputs and outputs
    po_files: List[str]
    report_path: Optional[str]


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _load_dotenv_file(project_root: str) -> Optional[str]:
    """Load the .env file from the project root, returning its path if it exists."""
    dotenv_path = os.path.join(project_root, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path)
        return dotenv_path
    return None


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to an empty configuration on any problem."""
    # PO_VALIDATOR_CONFIG_FILE may come from the .env file loaded before this call.
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('PO_VALIDATOR_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any]) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging', {})
    log_level_str = log_config.get('log_level', 'INFO').upper()
    log_file_path = log_config.get('log_file_path', 'logs/po_validator.log')
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _build_validator_config(config: Dict[str, Any]) -> ValidatorConfig:
    """Build the provider configuration; environment variables take precedence over the file."""
    provider = os.environ.get('PO_VALIDATOR_PROVIDER', config.get('provider', PROVIDER_OLLAMA)).lower()
    model_name = os.environ.get('PO_VALIDATOR_MODEL_NAME', config.get('model_name'))

    base_url = config.get('base_url')
    if provider == PROVIDER_OLLAMA:
        base_url = os.environ.get('OLLAMA_BASE_URL', base_url)

    api_key_env_var = API_KEY_ENV_VARS.get(provider)
    api_key = os.environ.get(api_key_env_var) if api_key_env_var else None

    return ValidatorConfig(
        provider=provider,
        model_name=model_name,
        api_key=api_key,
        base_url=base_url,
        requests_per_minute=config.get('requests_per_minute'),
    )


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    The provider configuration is not validated here; an unknown provider or
    a missing API key is reported when the validator is created.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()

    dotenv_path = _load_dotenv_file(project_root)

    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config)
    if dotenv_path:
        logger.info("Loaded environment variables from: %s", dotenv_path)
    else:
        logger.debug("No .env file found in '%s'. Relying on system environment variables.", project_root)

    default_batch_size = config.get('batch_size', DEFAULT_BATCH_SIZE)
    batch_size = int(os.environ.get('PO_VALIDATOR_BATCH_SIZE', default_batch_size))

    return AppConfig(
        project_root=project_root,
        validator_config=_build_validator_config(config),
        target_language=config.get('target_language'),
        batch_size=batch_size,
        po_files=list(config.get('po_files', [])),
        report_path=config.get('report_path'),
    )
