import struct

import numpy as np
import pytest

from kmpedit.errors import UnexpectedEnd
from kmpedit.parsers import KclFile, KclFlag
from kmpedit.utils import get_counts, get_source_tallies

POSITIONS = [(10.0, 5.0, 0.0), (0.0, 0.0, 0.0)]
NORMALS = [
    (0.0, 1.0, 0.0),    # face
    (0.0, 0.0, -1.0),   # edge A -> cross A = (1, 0, 0)
    (-1.0, 0.0, 0.0),   # edge B -> cross B = (0, 0, -1)
    (0.5, 0.0, -0.5),   # edge C
]
EXPECTED = [[10.0, 5.0, 0.0], [10.0, 5.0, -2.0], [12.0, 5.0, 0.0]]


def _prism(position=0, flag=0x0C, length=1.0, face=0, a=1, b=2, c=3):
    return (length, position, face, a, b, c, flag)


def _kcl(prisms, positions=POSITIONS, normals=NORMALS) -> bytes:
    pos = b"".join(struct.pack(">3f", *p) for p in positions)
    nrm = b"".join(struct.pack(">3f", *n) for n in normals)
    table = b"".join(struct.pack(">f6H", *p) for p in prisms)

    positions_off = 0x10
    normals_off = positions_off + len(pos)
    prism_start = normals_off + len(nrm)
    index_off = prism_start + len(table)
    header = struct.pack(">4I", positions_off, normals_off, prism_start - 0x10, index_off)
    return header + pos + nrm + table + b"\x00" * 8


def test_prism_becomes_triangle_in_its_bucket():
    kcl = KclFile.read(_kcl([_prism()]))

    walls = kcl.bucket(KclFlag.WALL_1)
    assert walls.shape == (1, 3, 3)
    np.testing.assert_allclose(walls[0], EXPECTED)
    assert kcl.triangle_count == 1
    assert kcl.skipped_prisms == 0


def test_bucket_uses_low_five_bits_of_flag():
    kcl = KclFile.read(_kcl([_prism(flag=0x1E3), _prism(position=1, flag=0x03)]))

    assert len(kcl.bucket(KclFlag.OFF_ROAD)) == 2
    assert kcl.counts() == {KclFlag.OFF_ROAD: 2}
    np.testing.assert_allclose(kcl.bucket(KclFlag.OFF_ROAD)[1][0], (0.0, 0.0, 0.0))


def test_out_of_range_prism_is_skipped_with_one_warning():
    good = _prism()
    kcl = KclFile.read(_kcl([good, _prism(position=9), _prism(c=40), good]))

    assert kcl.triangle_count == 2
    assert kcl.skipped_prisms == 2
    assert get_counts() == (0, 1)


def test_vertex_buffer_is_flat():
    kcl = KclFile.read(_kcl([_prism(), _prism()]))

    buffer = kcl.vertex_buffer(KclFlag.WALL_1)
    assert buffer.shape == (6, 3)
    assert buffer.dtype == np.float32
    assert len(kcl.vertex_buffer(KclFlag.ROAD_1)) == 0


def test_empty_prism_table():
    kcl = KclFile.read(_kcl([]))
    assert kcl.triangle_count == 0
    assert len(kcl.buckets) == 32


def test_truncated_header_raises():
    with pytest.raises(UnexpectedEnd):
        KclFile.read(b"\x00" * 8)


def test_truncated_prism_table_raises():
    data = _kcl([_prism(), _prism()])
    with pytest.raises(UnexpectedEnd):
        KclFile.read(data[:-8 - 20])


def test_from_file(tmp_path):
    path = tmp_path / "course.kcl"
    path.write_bytes(_kcl([_prism()]))
    assert KclFile.from_file(path).triangle_count == 1


def test_skipped_prisms_are_tallied_against_the_file():
    KclFile.read(_kcl([_prism(), _prism(position=9), _prism(face=40)]), source="track.kcl")

    file_tally = get_source_tallies()["track.kcl"]
    assert file_tally.counters == {"skipped prisms": 2}
    assert len(file_tally.warnings) == 1
