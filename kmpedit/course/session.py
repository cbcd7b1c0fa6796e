"""
Course Editing Session

Owns the current Course and serializes every load, save and edit through
one re-entrant lock. A load that fails leaves the previous course in
place.
"""

import shutil
import threading
from pathlib import Path
from typing import Iterable, Optional, Union

from kmpedit.config import EditorConfig
from kmpedit.parsers.kcl import KclFile
from kmpedit.parsers.kmp_file import KmpFile
from kmpedit.paths import NodeHandle
from kmpedit.utils import log
from .model import Course, EntityKind, LoadReport, empty_course


class CourseSession:
    """
    Thread-safe holder of the course being edited.

    Usage:
        session = CourseSession(EditorConfig(Path("kmpedit.ini")))
        report = session.load(Path("course.kmp"))
        session.delete_point(EntityKind.ENEMY, handle)
        session.save()
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config if config is not None else EditorConfig()
        self.path: Optional[Path] = None
        self.course: Course = empty_course(self.config.checkpoint_height)
        self.kcl: Optional[KclFile] = None
        self.last_report: Optional[LoadReport] = None
        self._lock = threading.RLock()

    def load(self, path: Union[str, Path]) -> LoadReport:
        """
        Replace the current course with the one in `path`.

        Raises:
            InvalidFormat: The file is not a valid KMP file
            OSError: The file cannot be read
        """
        path = Path(path)
        with self._lock:
            kmp = KmpFile.from_file(path)
            course, report = Course.from_kmp(kmp, self.config.checkpoint_height, source=path.name)
            self.course = course
            self.path = path
            self.last_report = report
            return report

    def load_kcl(self, path: Union[str, Path]) -> KclFile:
        with self._lock:
            self.kcl = KclFile.from_file(path)
            return self.kcl

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Encode the course and write it to `path` (default: the loaded path).

        With backup_on_save, an existing file is first copied to <name>.bak.

        Raises:
            PathGroupError: The graphs cannot be encoded
            ValueError: No path given and nothing was loaded
        """
        with self._lock:
            target = Path(path) if path is not None else self.path
            if target is None:
                raise ValueError("No output path: nothing was loaded and no path was given")

            # encode before touching the file so a failed save leaves it intact
            data = self.course.to_kmp().write()

            if self.config.backup_on_save and target.exists():
                backup = target.with_name(target.name + ".bak")
                shutil.copy2(target, backup)
                log(f"Backed up {target.name} -> {backup.name}")

            with open(target, 'wb') as f:
                f.write(data)
            log(f"Saved {target.name} ({len(data):,} bytes)")
            self.path = target
            return target

    # =========================================================================
    # Edits
    # =========================================================================

    def create_point(self, kind: EntityKind, record=None, position=None,
                     predecessors: Iterable[NodeHandle] = ()) -> NodeHandle:
        with self._lock:
            return self.course.create_point(kind, record, position, predecessors)

    def delete_point(self, kind: EntityKind, handle: NodeHandle):
        with self._lock:
            self.course.delete_point(kind, handle)

    def link(self, kind: EntityKind, prev: NodeHandle, next: NodeHandle) -> bool:
        with self._lock:
            return self.course.link(kind, prev, next)

    def unlink(self, kind: EntityKind, prev: NodeHandle, next: NodeHandle) -> bool:
        with self._lock:
            return self.course.unlink(kind, prev, next)

    def set_route(self, kind: EntityKind, handle: NodeHandle, route_node: Optional[NodeHandle]):
        with self._lock:
            self.course.set_route(kind, handle, route_node)
