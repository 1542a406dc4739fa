"""
Verification Configuration - Centralized Settings
=================================================

All configurable parameters in one place.
Supports environment variable overrides and JSON/YAML config files.

Usage:
    from vin_verify.config import get_config
    config = get_config()
    print(config.matching.identifier_column_index)

Environment Variables:
    VIN_VERIFY_COLUMN_INDEX=8
    VIN_VERIFY_MATCH_STRATEGY=row_order
    VIN_VERIFY_PROVIDER=gemini
    VIN_VERIFY_LOG_LEVEL=DEBUG
    GEMINI_API_KEY=...
"""

import os
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)


def _get_env_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(key)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Invalid float for {key}: {value}, using default {default}")
    return default


def _get_env_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    value = os.environ.get(key)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Invalid int for {key}: {value}, using default {default}")
    return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get bool from environment variable."""
    value = os.environ.get(key)
    if value is not None:
        return value.lower() in ('true', '1', 'yes', 'on')
    return default


def _get_env_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


# Accepted values for MatchingConfig.strategy
MATCH_STRATEGIES: Tuple[str, ...] = ('row_order', 'exact_first')


def _check_choice(name: str, value: str, choices: Tuple[str, ...], default: str) -> str:
    """Return value if it is one of choices, else warn and return default."""
    normalized = str(value).lower()
    if normalized in choices:
        return normalized
    logger.warning(f"Invalid value for {name}: {value!r} (expected one of {list(choices)}), using default {default!r}")
    return default


@dataclass
class ParserConfig:
    """Reference CSV layout."""
    
    # Title/metadata lines before the header row
    preamble_lines: int = field(
        default_factory=lambda: _get_env_int('VIN_VERIFY_PREAMBLE_LINES', 2)
    )
    delimiter: str = ','
    quote_char: str = '"'


@dataclass
class MatchingConfig:
    """Identifier column resolution and matching behaviour."""
    
    # Column I of the reference spreadsheet format
    identifier_column_index: int = field(
        default_factory=lambda: _get_env_int('VIN_VERIFY_COLUMN_INDEX', 8)
    )
    column_keywords: Tuple[str, ...] = ("車台番号", "CHASSIS", "VIN", "IDENTIFIER")
    
    # 'row_order' or 'exact_first'
    strategy: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_MATCH_STRATEGY', 'row_order')
    )
    
    def __post_init__(self):
        self.strategy = _check_choice('matching.strategy', self.strategy, MATCH_STRATEGIES, 'row_order')


@dataclass
class ExtractionConfig:
    """Identifier extraction from recognized text."""
    
    label_keywords: Tuple[str, ...] = ("車台番号", "CHASSIS", "VIN", "IDENTIFIER")


@dataclass
class ExportConfig:
    """Unverified diff export."""
    
    source_column: str = 'source file'
    filename_prefix: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_EXPORT_PREFIX', 'unverified')
    )
    encoding: str = 'utf-8'


@dataclass
class RecognitionConfig:
    """External recognition service settings."""
    
    provider: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_PROVIDER', 'paddleocr')
    )
    timeout: float = field(
        default_factory=lambda: _get_env_float('VIN_VERIFY_TIMEOUT', 60.0)
    )
    max_retries: int = field(
        default_factory=lambda: _get_env_int('VIN_VERIFY_MAX_RETRIES', 3)
    )
    retry_delay: float = 1.0  # seconds, doubled per attempt
    
    # Gemini (remote)
    gemini_api_key: Optional[str] = field(
        default_factory=lambda: os.environ.get('GEMINI_API_KEY')
    )
    gemini_model: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_GEMINI_MODEL', 'gemini-2.0-flash-exp')
    )
    gemini_endpoint: str = 'https://aiplatform.googleapis.com/v1/publishers/google/models'
    
    # PaddleOCR (local)
    ocr_lang: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_OCR_LANG', 'japan')
    )
    use_gpu: bool = field(
        default_factory=lambda: _get_env_bool('VIN_VERIFY_USE_GPU', False)
    )


@dataclass 
class LoggingConfig:
    """Logging configuration."""
    
    level: str = field(
        default_factory=lambda: _get_env_str('VIN_VERIFY_LOG_LEVEL', 'INFO')
    )
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format: str = '%Y-%m-%d %H:%M:%S'
    
    # File logging (optional)
    log_file: Optional[str] = field(
        default_factory=lambda: os.environ.get('VIN_VERIFY_LOG_FILE')
    )


@dataclass
class VerifyConfig:
    """Complete configuration."""
    
    parser: ParserConfig = field(default_factory=ParserConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary. The API key is never included."""
        data = asdict(self)
        data['recognition'].pop('gemini_api_key', None)
        return data
    
    def save(self, path: Union[str, Path]):
        """Save configuration to JSON or YAML depending on suffix."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix in ('.yaml', '.yml'):
                yaml.safe_dump(self.to_dict(), f, allow_unicode=True, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
    
    @classmethod
    def load(cls, path: Union[str, Path]) -> 'VerifyConfig':
        """Load configuration from a JSON or YAML file."""
        path = Path(path)
        with open(path, encoding='utf-8') as f:
            if path.suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        
        config = cls()
        for section_name, values in data.items():
            section = getattr(config, section_name, None)
            if section is None or not isinstance(values, dict):
                logger.warning(f"Ignoring unknown config section: {section_name}")
                continue
            for key, value in values.items():
                if not hasattr(section, key):
                    logger.warning(f"Ignoring unknown config key: {section_name}.{key}")
                    continue
                if isinstance(getattr(section, key), tuple) and isinstance(value, list):
                    value = tuple(value)
                setattr(section, key, value)
        
        config.matching.__post_init__()
        return config


# Global configuration instance (singleton pattern)
_config: Optional[VerifyConfig] = None


def get_config() -> VerifyConfig:
    """
    Get the global configuration instance.
    
    Creates a new instance on first call, returns cached instance thereafter.
    If VIN_VERIFY_CONFIG points to a file, it is loaded instead of defaults.
    """
    global _config
    if _config is None:
        _config = load_config()
        _setup_logging(_config.logging)
    return _config


def load_config(path: Optional[Union[str, Path]] = None) -> VerifyConfig:
    """Build a configuration from a file (or VIN_VERIFY_CONFIG) without installing it."""
    path = path or os.environ.get('VIN_VERIFY_CONFIG')
    return VerifyConfig.load(path) if path else VerifyConfig()


def set_config(config: VerifyConfig) -> None:
    """Install an explicit configuration (e.g. loaded from --config)."""
    global _config
    _config = config
    _setup_logging(config.logging)


def reset_config():
    """Reset configuration to defaults (useful for testing)."""
    global _config
    _config = None


def _setup_logging(config: LoggingConfig):
    """Configure logging based on settings."""
    level = getattr(logging, config.level.upper(), logging.INFO)
    
    handlers = [logging.StreamHandler()]
    
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    
    logging.basicConfig(
        level=level,
        format=config.format,
        datefmt=config.date_format,
        handlers=handlers,
    )
