"""Configuration module for Filler."""

from filler.config.loader import load_config, save_config, get_config_path, get_data_dir
from filler.config.schema import Config, LLMConfig, PathsConfig, ProcessingConfig

__all__ = [
    "Config",
    "LLMConfig",
    "PathsConfig",
    "ProcessingConfig",
    "load_config",
    "save_config",
    "get_config_path",
    "get_data_dir",
]
