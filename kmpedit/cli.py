"""
kmpedit command line

Inspect and round-trip course files without the editor.

Usage:
    kmpedit info course.kmp
    kmpedit roundtrip course.kmp out.kmp --course
    kmpedit kcl course.kcl
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from kmpedit.config import EditorConfig, DEFAULT_CONFIG_NAME
from kmpedit.course import Course, CourseSession
from kmpedit.errors import KmpError
from kmpedit.parsers import KclFile, KmpFile
from kmpedit.utils import log, logError, logWarning, init_logging, print_summary, get_counts


def cmd_info(args, config: EditorConfig) -> int:
    kmp = KmpFile.from_file(args.file)
    log(f"Version: 0x{kmp.header.version:X}  Length: {kmp.header.file_length:,} bytes")
    for section in kmp.sections():
        log(f"  {section.name}: {len(section):4d} entries")

    course, _ = Course.from_kmp(kmp, config.checkpoint_height, source=Path(args.file).name)
    for name, count in course.counts().items():
        log(f"  {name:<12} {count}")
    return 0


def cmd_roundtrip(args, config: EditorConfig) -> int:
    source = Path(args.input)
    target = Path(args.output)

    if args.course:
        session = CourseSession(config)
        session.load(source)
        session.save(target)
    else:
        KmpFile.from_file(source).to_file(target)

    if source.read_bytes() == target.read_bytes():
        log("Output is byte-identical to input")
    else:
        log("Output differs from input")
    return 0


def cmd_kcl(args, config: EditorConfig) -> int:
    kcl = KclFile.from_file(args.file)
    for flag, count in kcl.counts().items():
        log(f"  {flag.name:<26} {count:6d} triangles")
    log(f"Total: {kcl.triangle_count:,} triangles, {kcl.skipped_prisms} skipped prism(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='kmpedit',
        description='Inspect and convert KMP course and KCL collision files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    kmpedit info course.kmp

    # Decode and re-encode through the path graphs:
    kmpedit roundtrip course.kmp out.kmp --course

    # Triangle counts per surface type:
    kmpedit kcl course.kcl
        """
    )
    parser.add_argument('--config', default=None,
                        help=f'Path to configuration file (default: ./{DEFAULT_CONFIG_NAME} if present)')
    parser.add_argument('--log', default=None,
                        help='Log file path (overrides [logging] log_path)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', help='Show section counts and path summary')
    info.add_argument('file', help='KMP file')
    info.set_defaults(func=cmd_info)

    roundtrip = subparsers.add_parser('roundtrip', help='Decode and re-encode a KMP file')
    roundtrip.add_argument('input', help='Input KMP file')
    roundtrip.add_argument('output', help='Output KMP file')
    roundtrip.add_argument('--course', action='store_true',
                           help='Go through the course model instead of the raw codec')
    roundtrip.set_defaults(func=cmd_roundtrip)

    kcl = subparsers.add_parser('kcl', help='Show triangle counts of a KCL file')
    kcl.add_argument('file', help='KCL file')
    kcl.set_defaults(func=cmd_kcl)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config) if args.config else Path(DEFAULT_CONFIG_NAME)
    # config is read before logging starts, so only existing files are handed over
    try:
        config = EditorConfig(config_path if config_path.exists() else None)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    init_logging(Path(args.log) if args.log else config.log_path)
    if config.config_path is not None:
        log(f"Config: {config.config_path}")
    elif args.config:
        logWarning(f"Editor config not found: {config_path} (using defaults)")

    try:
        status = args.func(args, config)
    except (KmpError, OSError) as e:
        logError(f"{e}")
        status = 1

    print_summary()
    errors, _ = get_counts()
    return status if status else (1 if errors else 0)


if __name__ == '__main__':
    sys.exit(main())
