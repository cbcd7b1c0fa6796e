"""
KMP Section Framework

Every KMP section has the same shape:
- char[4] name (ASCII)
- u16 entry count
- u16 additional value (POTI: total route points; otherwise stored as-is)
- entries, each decoded by the section's record class

Entry order is the index space other records refer to, so it is kept
exactly as read.
"""

from dataclasses import dataclass, field
from typing import Generic, Iterator, List, Type, TypeVar

from kmpedit.constants import KMP_MAGIC, KMP_SECTION_COUNT, KMP_HEADER_LENGTH, KMP_DEFAULT_VERSION
from kmpedit.errors import InvalidFormat
from kmpedit.utils.binary import BinaryReader, BinaryWriter

T = TypeVar('T')


def _read_name(reader: BinaryReader, what: str) -> str:
    raw = reader.read_bytes(4)
    try:
        return raw.decode('ascii')
    except UnicodeDecodeError:
        raise InvalidFormat(f"Invalid {what} {raw!r} at offset 0x{reader.tell() - 4:X}") from None


@dataclass
class Section(Generic[T]):
    """A named, counted block of homogeneous records."""
    name: str
    record_type: Type[T]
    entries: List[T] = field(default_factory=list)
    additional_value: int = 0

    HEADER_SIZE = 8

    @classmethod
    def read(cls, reader: BinaryReader, record_type: Type[T]) -> 'Section[T]':
        """
        Read a section header and its entries.

        Args:
            reader: Reader positioned at the section name
            record_type: Record class used to decode each entry

        Returns:
            Section with entries in on-disk order
        """
        name = _read_name(reader, "section name")
        count = reader.read_u16()
        additional_value = reader.read_u16()
        entries = [record_type.read(reader) for _ in range(count)]
        return cls(name, record_type, entries, additional_value)

    def write(self, writer: BinaryWriter):
        writer.write_bytes(self.name.encode('ascii'))
        writer.write_u16(len(self.entries))
        writer.write_u16(self.additional_value)
        for entry in self.entries:
            entry.write(writer)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> T:
        return self.entries[index]


@dataclass
class Header:
    """
    KMP file header (0x4C bytes).

    Section offsets are relative to the end of the header and, like the
    file length, are recomputed every time the file is written.
    """
    file_length: int = 0
    section_count: int = KMP_SECTION_COUNT
    header_length: int = KMP_HEADER_LENGTH
    version: int = KMP_DEFAULT_VERSION
    section_offsets: List[int] = field(default_factory=lambda: [0] * KMP_SECTION_COUNT)
    # bytes between the fixed fields and header_length, kept verbatim
    reserved: bytes = b''

    @classmethod
    def read(cls, reader: BinaryReader) -> 'Header':
        magic = reader.read_bytes(4)
        if magic != KMP_MAGIC:
            raise InvalidFormat(f"Invalid file magic {magic!r} (expected {KMP_MAGIC!r})")
        file_length = reader.read_u32()
        section_count = reader.read_u16()
        if section_count != KMP_SECTION_COUNT:
            raise InvalidFormat(f"Expected {KMP_SECTION_COUNT} sections but found {section_count}")
        header_length = reader.read_u16()
        version = reader.read_u32()
        section_offsets = list(reader.read_array('I', KMP_SECTION_COUNT))
        reserved = reader.read_bytes(max(header_length - KMP_HEADER_LENGTH, 0))
        return cls(file_length, section_count, header_length, version, section_offsets, reserved)

    def write(self, writer: BinaryWriter):
        writer.write_bytes(KMP_MAGIC)
        writer.write_u32(self.file_length)
        writer.write_u16(self.section_count)
        writer.write_u16(self.header_length)
        writer.write_u32(self.version)
        writer.write_array('I', self.section_offsets)
        reserved_length = max(self.header_length - KMP_HEADER_LENGTH, 0)
        writer.write_bytes(self.reserved[:reserved_length].ljust(reserved_length, b'\0'))
