"""
Editor Configuration

Parses the kmpedit.ini file controlling logging and course editing.

INI Format:
    [logging]
    log_path = kmpedit.log

    [course]
    checkpoint_height = 0.0
    backup_on_save = false

A missing file gives the defaults (with a warning). A value that cannot
be parsed raises ValueError naming the key.
"""

import configparser
from pathlib import Path
from typing import Optional, Union

from kmpedit.utils import logWarning

DEFAULT_CONFIG_NAME = "kmpedit.ini"


class EditorConfig:
    """
    Settings read from kmpedit.ini.

    Usage:
        config = EditorConfig(Path("kmpedit.ini"))
        init_logging(config.log_path)
        session = CourseSession(config)
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Load editor configuration.

        Args:
            config_path: Path to the INI file; None uses the defaults only
        """
        self.config_path = Path(config_path) if config_path is not None else None
        self.log_path: Optional[Path] = None
        self.checkpoint_height: float = 0.0
        self.backup_on_save: bool = False

        if self.config_path is not None:
            self._load()

    def _load(self):
        if not self.config_path.exists():
            logWarning(f"Editor config not found: {self.config_path} (using defaults)")
            return

        config = configparser.ConfigParser()
        config.read(self.config_path, encoding='utf-8')

        if config.has_option('logging', 'log_path'):
            value = config.get('logging', 'log_path').strip()
            if value:
                path = Path(value)
                if not path.is_absolute():
                    path = self.config_path.parent / path
                self.log_path = path

        try:
            self.checkpoint_height = config.getfloat('course', 'checkpoint_height', fallback=0.0)
        except ValueError as e:
            raise ValueError(f"Invalid [course] checkpoint_height: {e}") from e

        try:
            self.backup_on_save = config.getboolean('course', 'backup_on_save', fallback=False)
        except ValueError as e:
            raise ValueError(f"Invalid [course] backup_on_save: {e}") from e

    def __repr__(self) -> str:
        return (f"EditorConfig(log_path={self.log_path}, checkpoint_height={self.checkpoint_height}, "
                f"backup_on_save={self.backup_on_save})")
