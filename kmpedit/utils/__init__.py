# kmpedit utilities
from .logging import (
    log, logWarning, logError, logDebug, init_logging, close_logging, print_summary,
    get_counts, get_source_tallies, source_scope, tally, SourceTally,
)
from .binary import BinaryReader, BinaryWriter, Vec2, Vec3
