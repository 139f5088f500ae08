"""Configuration module for chatjournal."""

from chatjournal.config.loader import get_config_path, load_config, save_config
from chatjournal.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
