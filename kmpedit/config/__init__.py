"""
Config module for editor settings.
"""

from .editor_config import EditorConfig, DEFAULT_CONFIG_NAME

__all__ = ['EditorConfig', 'DEFAULT_CONFIG_NAME']
