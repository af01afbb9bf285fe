import copy
import os
import logging
import logging.handlers
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv


CONFIG_FILENAME = 'vsu.yaml'


def load_config(config_path: Optional[str] = None, root: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    An explicit config_path wins; otherwise vsu.yaml in the scanned root is
    used when present. Values from the file are merged over the defaults
    section by section.
    """
    # Load environment variables
    load_dotenv()

    config = get_default_config()

    if config_path is None and root is not None:
        candidate = os.path.join(root, CONFIG_FILENAME)
        if os.path.exists(candidate):
            config_path = candidate

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                user_config = yaml.safe_load(f) or {}
            config = merge_config(config, user_config)
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Could not load config from {config_path}: {e}")

    # Override with environment variables
    config = apply_env_overrides(config)

    return config


def get_default_config() -> Dict[str, Any]:
    """Get default configuration values."""
    return {
        'scan': {
            'extensions': ['.cs'],
            'ignored_file': None,
            'report_filename': 'version_raport.txt'
        },
        'versioning': {
            'increment_mode': 'revision',
            'max_major': 99,
            'max_minor': 99,
            'max_build': 99,
            'max_revision': 99
        },
        'markers': {
            'default_prefix': '//',
            'prefixes': {}
        },
        'state': {
            'hashes_filename': 'hashes.json',
            'history_filename': 'version_history.json'
        },
        'logging': {
            'level': 'INFO',
            'log_to_file': False,
            'log_filename': 'vsu.log',
            'logs_dir': 'logs',
            'rotate_logs': True
        }
    }


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge a user config over the defaults; nested sections merge key by key."""
    merged = copy.deepcopy(base)
    if not isinstance(override, dict):
        logging.warning("Ignoring config file: top level must be a mapping")
        return merged
    for section, values in override.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def _split_extensions(value: str):
    return [x.strip() for x in value.split(',') if x.strip()]


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration."""
    env_mappings = {
        'VSU_EXTENSIONS': ('scan', 'extensions', _split_extensions),
        'VSU_INCREMENT_MODE': ('versioning', 'increment_mode', str),
        'VSU_MAX_MAJOR': ('versioning', 'max_major', int),
        'VSU_MAX_MINOR': ('versioning', 'max_minor', int),
        'VSU_MAX_BUILD': ('versioning', 'max_build', int),
        'VSU_MAX_REVISION': ('versioning', 'max_revision', int),
        'LOG_LEVEL': ('logging', 'level', str),
        'DEBUG_MODE': ('logging', 'level', lambda x: 'DEBUG' if x.lower() == 'true' else config['logging']['level'])
    }

    for env_var, (section, key, converter) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                converted_value = converter(value)
                config[section][key] = converted_value
            except (ValueError, TypeError) as e:
                logging.warning(f"Invalid value for {env_var}: {value} - {e}")

    return config


def setup_logging(logging_config: Dict[str, Any]) -> logging.Logger:
    """Setup logging configuration."""
    level = getattr(logging, str(logging_config.get('level', 'INFO')).upper(), logging.INFO)

    # Configure logging
    logger = logging.getLogger()
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    if logging_config.get('log_to_file', False):
        logs_dir = logging_config.get('logs_dir', 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = os.path.join(logs_dir, logging_config.get('log_filename', 'vsu.log'))

        if logging_config.get('rotate_logs', True):
            # Rotating file handler
            file_handler = logging.handlers.RotatingFileHandler(
                log_filename,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
        else:
            # Regular file handler
            file_handler = logging.FileHandler(log_filename, encoding='utf-8')

        file_handler.setLevel(logging.DEBUG)  # File gets all logs
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def relative_display(path: str, root: Path) -> str:
    """Show a path relative to the scanned root when it lies inside it."""
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return str(path)
