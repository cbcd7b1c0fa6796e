"""
KMP Course File

Reads and writes complete KMP files: a header followed by 15 sections in
a fixed order.

Write strategy (offsets are unknowable until every section is serialized):
1. Reserve header-length zero bytes
2. Write every section, recording where each one starts
3. Set section offsets (relative to the header end) and the file length
4. Seek to 0 and overwrite the reserved bytes with the real header
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple, Type, Union

from kmpedit.constants import KMP_HEADER_LENGTH, KMP_SECTION_NAMES
from kmpedit.utils import log, logDebug
from kmpedit.utils.binary import BinaryReader, BinaryWriter
from .records import (
    Area,
    Camera,
    CannonPoint,
    Checkpoint,
    EnemyPoint,
    FinishPoint,
    GeoObject,
    ItemPoint,
    PathGroup,
    RespawnPoint,
    Route,
    StageInfo,
    StartPoint,
)
from .sections import Header, Section

# (attribute, record class) in on-disk order
SECTION_LAYOUT: Tuple[Tuple[str, Type], ...] = (
    ('start_points', StartPoint),
    ('enemy_points', EnemyPoint),
    ('enemy_groups', PathGroup),
    ('item_points', ItemPoint),
    ('item_groups', PathGroup),
    ('checkpoints', Checkpoint),
    ('checkpoint_groups', PathGroup),
    ('objects', GeoObject),
    ('routes', Route),
    ('areas', Area),
    ('cameras', Camera),
    ('respawn_points', RespawnPoint),
    ('cannon_points', CannonPoint),
    ('finish_points', FinishPoint),
    ('stage_info', StageInfo),
)


def _empty_section(index: int) -> Section:
    attr, record_type = SECTION_LAYOUT[index]
    return Section(KMP_SECTION_NAMES[index], record_type)


@dataclass
class KmpFile:
    """
    In-memory KMP file.

    Usage:
        kmp = KmpFile.from_file(Path("course.kmp"))
        print(len(kmp.enemy_points), "enemy points")
        kmp.to_file(Path("course_out.kmp"))
    """
    header: Header = field(default_factory=Header)
    start_points: Section = field(default_factory=lambda: _empty_section(0))
    enemy_points: Section = field(default_factory=lambda: _empty_section(1))
    enemy_groups: Section = field(default_factory=lambda: _empty_section(2))
    item_points: Section = field(default_factory=lambda: _empty_section(3))
    item_groups: Section = field(default_factory=lambda: _empty_section(4))
    checkpoints: Section = field(default_factory=lambda: _empty_section(5))
    checkpoint_groups: Section = field(default_factory=lambda: _empty_section(6))
    objects: Section = field(default_factory=lambda: _empty_section(7))
    routes: Section = field(default_factory=lambda: _empty_section(8))
    areas: Section = field(default_factory=lambda: _empty_section(9))
    cameras: Section = field(default_factory=lambda: _empty_section(10))
    respawn_points: Section = field(default_factory=lambda: _empty_section(11))
    cannon_points: Section = field(default_factory=lambda: _empty_section(12))
    finish_points: Section = field(default_factory=lambda: _empty_section(13))
    stage_info: Section = field(default_factory=lambda: _empty_section(14))

    @classmethod
    def read(cls, data: bytes) -> 'KmpFile':
        """
        Decode a KMP file.

        Raises:
            InvalidFormat: Bad magic, section count or section name
            UnexpectedEnd: Data ends inside a record
        """
        reader = BinaryReader(data)
        header = Header.read(reader)
        reader.seek(max(header.header_length, KMP_HEADER_LENGTH))

        sections: Dict[str, Section] = {}
        for attr, record_type in SECTION_LAYOUT:
            sections[attr] = Section.read(reader, record_type)

        return cls(header=header, **sections)

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> 'KmpFile':
        filepath = Path(filepath)
        with open(filepath, 'rb') as f:
            data = f.read()
        log(f"Reading {filepath.name} ({len(data):,} bytes)")
        return cls.read(data)

    def sections(self) -> List[Section]:
        return [getattr(self, attr) for attr, _ in SECTION_LAYOUT]

    def write(self) -> bytes:
        """
        Encode the file, recomputing section offsets and file length.

        Returns:
            Complete KMP file bytes
        """
        header_length = max(self.header.header_length, KMP_HEADER_LENGTH)
        writer = BinaryWriter()
        writer.write_padding(header_length)

        self.routes.additional_value = sum(len(route.points) for route in self.routes)

        offsets = []
        for section in self.sections():
            offsets.append(writer.tell() - header_length)
            section.write(writer)

        self.header.section_offsets = offsets
        self.header.file_length = writer.tell()

        writer.seek(0)
        self.header.write(writer)

        for name, offset in zip(KMP_SECTION_NAMES, offsets):
            logDebug(f"    {name} at +0x{offset:X}")
        return writer.getvalue()

    def to_file(self, filepath: Union[str, Path]):
        filepath = Path(filepath)
        data = self.write()
        with open(filepath, 'wb') as f:
            f.write(data)
        log(f"Wrote {filepath.name} ({len(data):,} bytes)")
