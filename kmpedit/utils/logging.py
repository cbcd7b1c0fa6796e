"""
Session logging for kmpedit.

Messages go to the console and to a session log file. Warnings are
attributed to the course or collision file being read when they are
raised, so the end-of-run summary can say which file lost data and how
much (skipped groups, dropped route references, skipped prisms...).

Usage:
    from kmpedit.utils import log, logWarning, init_logging, print_summary, source_scope, tally

    init_logging(Path("kmpedit.log"))

    with source_scope("course.kmp"):
        logWarning("group 3 skipped")         # counted against course.kmp
        tally("skipped groups")

    print_summary()
"""

import sys
import atexit
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

DEFAULT_LOG_NAME = "kmpedit.log"

_YELLOW = '\033[93m'
_RED = '\033[91m'
_GREEN = '\033[92m'
_BOLD = '\033[1m'
_RESET = '\033[0m'


def _paint(text: str, *codes: str) -> str:
    return ''.join(codes) + text + _RESET


@dataclass
class SourceTally:
    """Warnings and recovered-data counters collected for one input file."""
    warnings: List[str] = field(default_factory=list)
    counters: Dict[str, int] = field(default_factory=dict)


# Module state
_log_file = None
_log_path: Optional[Path] = None
_initialized = False
_console = True
_errors: List[str] = []
_sources: Dict[Optional[str], SourceTally] = {}
_scope: List[str] = []


def _current_source() -> Optional[str]:
    return _scope[-1] if _scope else None


def _tally_for(source: Optional[str]) -> SourceTally:
    if source not in _sources:
        _sources[source] = SourceTally()
    return _sources[source]


def init_logging(log_path: Path = None, console: bool = True):
    """
    Start a logging session.

    Args:
        log_path: Session log file. Defaults to ./kmpedit.log
        console: If False, info messages go to the file only
    """
    global _log_file, _log_path, _initialized, _console, _errors, _sources, _scope

    if _initialized:
        return

    _errors = []
    _sources = {}
    _scope = []
    _console = console
    _log_path = Path(log_path) if log_path is not None else Path.cwd() / DEFAULT_LOG_NAME
    _initialized = True

    try:
        _log_path.parent.mkdir(parents=True, exist_ok=True)
        _log_file = open(_log_path, 'w', encoding='utf-8')
    except OSError as e:
        print(f"Warning: cannot open log file {_log_path}: {e}", file=sys.stderr)
        _log_file = None
        return

    _write_to_file(f"kmpedit session {datetime.now():%Y-%m-%d %H:%M:%S}")
    atexit.register(close_logging)


def close_logging():
    """End the session and close the log file."""
    global _log_file, _initialized

    if _log_file is not None:
        _write_to_file(f"session closed {datetime.now():%Y-%m-%d %H:%M:%S}")
        _log_file.close()
        _log_file = None
    _initialized = False


@contextmanager
def source_scope(source: str) -> Iterator[SourceTally]:
    """
    Attribute warnings and counters raised inside the block to `source`.

    Scopes nest; the innermost name wins.
    """
    if not _initialized:
        init_logging()
    _scope.append(source)
    try:
        yield _tally_for(source)
    finally:
        _scope.pop()


def tally(what: str, amount: int = 1, source: Optional[str] = None):
    """Add `amount` to the `what` counter of `source` (default: current scope)."""
    if not amount:
        return
    counters = _tally_for(source if source is not None else _current_source()).counters
    counters[what] = counters.get(what, 0) + amount


def get_counts() -> Tuple[int, int]:
    """Return (error_count, warning_count)."""
    return len(_errors), sum(len(t.warnings) for t in _sources.values())


def get_source_tallies() -> Dict[Optional[str], SourceTally]:
    """Per-file tallies; warnings logged outside any scope are under None."""
    return dict(_sources)


def print_summary():
    """Print per-file recovered-data counts, then the error/warning totals."""
    lines = []
    for source, file_tally in _sources.items():
        if not file_tally.warnings and not file_tally.counters:
            continue
        details = [f"{count} {what}" for what, count in file_tally.counters.items()]
        details.append(f"{len(file_tally.warnings)} warning(s)")
        lines.append(f"  {source or '(session)'}: {', '.join(details)}")

    errors, warnings = get_counts()
    log("")
    if lines:
        log("Recovered data:")
        for line in lines:
            log(line)
    for err in _errors:
        log(f"  failed: {err}")

    totals = f"{errors} error(s) | {warnings} warning(s)"
    if errors:
        colour = _RED
    elif warnings:
        colour = _YELLOW
    else:
        colour = _GREEN
    print(_paint(totals, colour, _BOLD))
    _write_to_file(totals)


def _write_to_file(msg: str, end: str = "\n"):
    if _log_file is not None:
        _log_file.write(msg + end)
        _log_file.flush()


def log(msg: str = "", end: str = "\n"):
    """Info line: file read/written, section and path counts."""
    if not _initialized:
        init_logging()
    if _console:
        print(msg, end=end)
    _write_to_file(msg, end)


def logWarning(msg: str, end: str = "\n"):
    """
    Data was recovered or skipped. Counted against the current source
    file, shown in yellow.
    """
    if not _initialized:
        init_logging()
    source = _current_source()
    text = f"{source}: {msg}" if source and not msg.startswith(f"{source}:") else msg
    print(_paint(f"Warning: {text}", _YELLOW), end=end)
    _write_to_file(f"WARNING {text}", end)
    _tally_for(source).warnings.append(msg)


def logError(msg: str, end: str = "\n"):
    """A load, save or command failed. Shown in red on stderr."""
    if not _initialized:
        init_logging()
    print(_paint(f"ERROR: {msg}", _RED), end=end, file=sys.stderr)
    _write_to_file(f"ERROR {msg}", end)
    _errors.append(msg)


def logDebug(msg: str, end: str = "\n"):
    """File only."""
    if not _initialized:
        init_logging()
    _write_to_file(f"DEBUG {msg}", end)
