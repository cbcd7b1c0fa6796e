import struct

import pytest

from kmpedit.constants import KMP_HEADER_LENGTH, KMP_SECTION_NAMES
from kmpedit.errors import InvalidFormat, UnexpectedEnd
from kmpedit.parsers import KmpFile, Route, RoutePoint


def test_write_read_write_is_byte_identical(sample_bytes):
    decoded = KmpFile.read(sample_bytes)
    assert decoded.write() == sample_bytes


def test_header_fields_are_derived_on_write(sample_bytes):
    assert sample_bytes[:4] == b"RKMD"
    file_length, = struct.unpack_from(">I", sample_bytes, 4)
    count, header_length = struct.unpack_from(">HH", sample_bytes, 8)

    assert file_length == len(sample_bytes)
    assert count == 15
    assert header_length == KMP_HEADER_LENGTH


def test_section_offsets_point_at_section_names(sample_bytes):
    offsets = struct.unpack_from(">15I", sample_bytes, 0x10)
    assert offsets[0] == 0
    for name, offset in zip(KMP_SECTION_NAMES, offsets):
        start = KMP_HEADER_LENGTH + offset
        assert sample_bytes[start:start + 4] == name.encode('ascii')


def test_sections_decode_in_order(sample_bytes):
    decoded = KmpFile.read(sample_bytes)

    assert [s.name for s in decoded.sections()] == list(KMP_SECTION_NAMES)
    assert len(decoded.enemy_points) == 3
    assert decoded.item_groups[0].next_indices() == [1, 2]
    assert decoded.checkpoints[1].checkpoint_type == -1
    assert decoded.objects[0].route == 0
    assert decoded.stage_info[0].speed_mod == 1.5


def test_route_section_carries_total_point_count(sample_bytes):
    decoded = KmpFile.read(sample_bytes)
    assert decoded.routes.additional_value == 3


def test_entry_count_follows_entries(sample_kmp):
    sample_kmp.routes.entries.append(Route(0, 0, [RoutePoint(), RoutePoint()]))
    decoded = KmpFile.read(sample_kmp.write())

    assert len(decoded.routes) == 3
    assert decoded.routes.additional_value == 5


def test_bad_magic_is_rejected(sample_bytes):
    with pytest.raises(InvalidFormat, match="magic"):
        KmpFile.read(b"DMKR" + sample_bytes[4:])


def test_wrong_section_count_is_rejected(sample_bytes):
    data = bytearray(sample_bytes)
    struct.pack_into(">H", data, 8, 14)
    with pytest.raises(InvalidFormat, match="14"):
        KmpFile.read(bytes(data))


def test_non_ascii_section_name_is_rejected(sample_bytes):
    data = bytearray(sample_bytes)
    data[KMP_HEADER_LENGTH] = 0xFF
    with pytest.raises(InvalidFormat, match="section name"):
        KmpFile.read(bytes(data))


def test_truncated_file_raises_unexpected_end(sample_bytes):
    with pytest.raises(UnexpectedEnd):
        KmpFile.read(sample_bytes[:-1])


def test_empty_file_round_trips():
    data = KmpFile().write()
    # header plus 15 empty section headers
    assert len(data) == KMP_HEADER_LENGTH + 15 * 8
    assert KmpFile.read(data).write() == data


def test_file_helpers(tmp_path, sample_kmp):
    path = tmp_path / "course.kmp"
    sample_kmp.to_file(path)
    assert KmpFile.from_file(path).write() == path.read_bytes()


def test_longer_header_keeps_its_reserved_bytes(sample_bytes):
    extra = b"\x12\x34\x56\x78"
    data = bytearray(sample_bytes[:KMP_HEADER_LENGTH] + extra + sample_bytes[KMP_HEADER_LENGTH:])
    struct.pack_into(">I", data, 4, len(data))
    struct.pack_into(">H", data, 10, KMP_HEADER_LENGTH + len(extra))

    decoded = KmpFile.read(bytes(data))

    assert decoded.header.reserved == extra
    assert decoded.write() == bytes(data)
