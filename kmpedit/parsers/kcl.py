"""
KCL Collision Parser

Decodes a KCL collision file into triangles grouped by surface type.

File format (big-endian):
- u32[4] offsets: positions, normals, prisms, spatial index
- Positions: f32 x 3, from the position offset up to the normal offset
- Normals: f32 x 3, up to prism offset + 0x10
- Prisms (16 bytes each), from prism offset + 0x10 up to the spatial index:
  - f32 length
  - u16 position index, face normal, edge normal A, B, C
  - u16 flag (low 5 bits = surface type)

The spatial index is not decoded.

A prism whose indices point outside the position/normal arrays is skipped.
Skipped prisms are counted and reported as one warning per file.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Union

import numpy as np

from kmpedit.constants import (
    KCL_FLAG_TYPE_MASK,
    KCL_PRISM_SIZE,
    KCL_PRISM_TABLE_SKEW,
    KCL_TYPE_COUNT,
)
from kmpedit.errors import UnexpectedEnd
from kmpedit.utils import log, logWarning, source_scope, tally

VEC3_DTYPE = np.dtype('>f4')
PRISM_DTYPE = np.dtype([
    ('length', '>f4'),
    ('position', '>u2'),
    ('face_normal', '>u2'),
    ('normal_a', '>u2'),
    ('normal_b', '>u2'),
    ('normal_c', '>u2'),
    ('flag', '>u2'),
])
NORMAL_FIELDS = ('face_normal', 'normal_a', 'normal_b', 'normal_c')


class KclFlag(IntEnum):
    """Surface type selected by the low 5 bits of a prism flag."""
    ROAD_1 = 0
    SLIPPERY_ROAD_1 = 1
    WEAK_OFF_ROAD = 2
    OFF_ROAD = 3
    HEAVY_OFF_ROAD = 4
    SLIPPERY_ROAD_2 = 5
    BOOST_PANEL = 6
    BOOST_RAMP = 7
    JUMP_PAD = 8
    ITEM_ROAD = 9
    SOLID_FALL = 10
    MOVING_WATER = 11
    WALL_1 = 12
    INVISIBLE_WALL_1 = 13
    ITEM_WALL = 14
    WALL_2 = 15
    FALL_BOUNDARY = 16
    CANNON_TRIGGER = 17
    FORCE_RECALCULATION = 18
    HALF_PIPE_RAMP = 19
    PLAYER_ONLY_WALL = 20
    MOVING_ROAD = 21
    STICKY_ROAD = 22
    ROAD_2 = 23
    SOUND_TRIGGER = 24
    WEAK_WALL = 25
    EFFECT_TRIGGER = 26
    ITEM_STATE_MODIFIER = 27
    HALF_PIPE_INVISIBLE_WALL = 28
    ROTATING_ROAD = 29
    SPECIAL_WALL = 30
    INVISIBLE_WALL_2 = 31


def _empty_buckets() -> List[np.ndarray]:
    return [np.zeros((0, 3, 3), dtype=np.float32) for _ in range(KCL_TYPE_COUNT)]


def _region(data: bytes, start: int, end: int, item_size: int, dtype: np.dtype) -> np.ndarray:
    """
    Slice [start, end) into whole items, rounding the item count up.

    Items are read while the cursor is still before `end`, so a region that
    is not a multiple of the item size reads one item past it.

    Raises:
        UnexpectedEnd: The last item runs past the end of the data
    """
    if end <= start:
        return np.frombuffer(b'', dtype=dtype)
    count = -(-(end - start) // item_size)
    wanted = count * item_size
    if start + wanted > len(data):
        raise UnexpectedEnd(start, wanted, max(len(data) - start, 0))
    return np.frombuffer(data, dtype=dtype, count=count * (item_size // dtype.itemsize), offset=start)


@dataclass
class KclFile:
    """
    Decoded KCL collision data.

    `buckets[t]` holds an (N, 3, 3) float32 array: N triangles of surface
    type t, three vertices each.

    Usage:
        kcl = KclFile.from_file(Path("course.kcl"))
        walls = kcl.bucket(KclFlag.WALL_1)
        flat = kcl.vertex_buffer(KclFlag.ROAD_1)  # (N * 3, 3)
    """
    buckets: List[np.ndarray] = field(default_factory=_empty_buckets)
    skipped_prisms: int = 0

    @classmethod
    def read(cls, data: bytes, source: str = "KCL") -> 'KclFile':
        """
        Decode KCL bytes.

        Args:
            data: Complete file contents
            source: Name used in log messages

        Returns:
            KclFile with one triangle bucket per surface type

        Raises:
            UnexpectedEnd: Header or a position/normal/prism table is truncated
        """
        if len(data) < 16:
            raise UnexpectedEnd(0, 16, len(data))
        positions_off, normals_off, prisms_off, index_off = (
            int(v) for v in np.frombuffer(data, dtype='>u4', count=4)
        )
        prism_start = prisms_off + KCL_PRISM_TABLE_SKEW

        positions = _region(data, positions_off, normals_off, 12, VEC3_DTYPE).reshape(-1, 3)
        normals = _region(data, normals_off, prism_start, 12, VEC3_DTYPE).reshape(-1, 3)
        prisms = _region(data, prism_start, index_off, KCL_PRISM_SIZE, PRISM_DTYPE)

        positions = positions.astype(np.float32)
        normals = normals.astype(np.float32)

        index = {key: prisms[key].astype(np.intp) for key in NORMAL_FIELDS + ('position',)}
        valid = index['position'] < len(positions)
        for key in NORMAL_FIELDS:
            valid &= index[key] < len(normals)
        skipped = int(np.count_nonzero(~valid))
        prisms = prisms[valid]
        index = {key: value[valid] for key, value in index.items()}

        vertex = positions[index['position']]
        face = normals[index['face_normal']]
        normal_c = normals[index['normal_c']]
        cross_a = np.cross(normals[index['normal_a']], face)
        cross_b = np.cross(normals[index['normal_b']], face)
        length = prisms['length'].astype(np.float32)[:, None]

        # degenerate prisms produce inf/nan vertices, kept as-is
        with np.errstate(divide='ignore', invalid='ignore'):
            v2 = vertex + cross_b * (length / np.sum(cross_b * normal_c, axis=1, keepdims=True))
            v3 = vertex + cross_a * (length / np.sum(cross_a * normal_c, axis=1, keepdims=True))
        triangles = np.stack([vertex, v2, v3], axis=1).astype(np.float32)

        surface = prisms['flag'] & KCL_FLAG_TYPE_MASK
        buckets = [triangles[surface == t] for t in range(KCL_TYPE_COUNT)]

        if skipped:
            with source_scope(source):
                logWarning(f"skipped {skipped} prism(s) with out-of-range indices")
                tally("skipped prisms", skipped)
        return cls(buckets=buckets, skipped_prisms=skipped)

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> 'KclFile':
        filepath = Path(filepath)
        with open(filepath, 'rb') as f:
            data = f.read()
        log(f"Reading {filepath.name} ({len(data):,} bytes)")
        return cls.read(data, source=filepath.name)

    def bucket(self, surface: Union[KclFlag, int]) -> np.ndarray:
        return self.buckets[int(surface)]

    def vertex_buffer(self, surface: Union[KclFlag, int]) -> np.ndarray:
        """Triangles of one surface type flattened to (N * 3, 3) for renderers."""
        return self.buckets[int(surface)].reshape(-1, 3)

    @property
    def triangle_count(self) -> int:
        return sum(len(b) for b in self.buckets)

    def counts(self) -> Dict[KclFlag, int]:
        """Triangle count per non-empty surface type."""
        return {KclFlag(t): len(b) for t, b in enumerate(self.buckets) if len(b)}
