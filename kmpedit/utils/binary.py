"""
Binary File Utilities

Big-endian read/write helpers shared by the KMP and KCL codecs.

Every read either consumes exactly the requested bytes or raises
UnexpectedEnd and leaves the cursor where it was. Every write emits
exactly the requested byte count. All multi-byte values are big-endian.
"""

import io
import struct
from typing import Tuple

from kmpedit.errors import UnexpectedEnd

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

_U8 = struct.Struct('>B')
_I8 = struct.Struct('>b')
_U16 = struct.Struct('>H')
_I16 = struct.Struct('>h')
_U32 = struct.Struct('>I')
_F32 = struct.Struct('>f')
_VEC2 = struct.Struct('>2f')
_VEC3 = struct.Struct('>3f')


class BinaryReader:
    """
    Cursor over an immutable bytes buffer.

    Usage:
        reader = BinaryReader(data)
        magic = reader.read_bytes(4)
        length = reader.read_u32()
        offsets = reader.read_array('I', 15)
    """

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    def _unpack(self, st: struct.Struct) -> tuple:
        end = self.offset + st.size
        if end > len(self.data):
            raise UnexpectedEnd(self.offset, st.size, self.remaining)
        values = st.unpack_from(self.data, self.offset)
        self.offset = end
        return values

    def read_u8(self) -> int:
        return self._unpack(_U8)[0]

    def read_i8(self) -> int:
        return self._unpack(_I8)[0]

    def read_u16(self) -> int:
        return self._unpack(_U16)[0]

    def read_i16(self) -> int:
        return self._unpack(_I16)[0]

    def read_u32(self) -> int:
        return self._unpack(_U32)[0]

    def read_f32(self) -> float:
        return self._unpack(_F32)[0]

    def read_vec2(self) -> Vec2:
        return self._unpack(_VEC2)

    def read_vec3(self) -> Vec3:
        """Read three consecutive big-endian f32 values."""
        return self._unpack(_VEC3)

    def read_array(self, type_code: str, count: int) -> Tuple[int, ...]:
        """
        Read a fixed-size homogeneous array.

        Args:
            type_code: struct type code of one element ('B', 'H', 'I', ...)
            count: Number of elements

        Returns:
            Tuple of decoded values
        """
        return self._unpack(struct.Struct(f'>{count}{type_code}'))

    def read_bytes(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise UnexpectedEnd(self.offset, size, self.remaining)
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def seek(self, offset: int):
        self.offset = offset

    def tell(self) -> int:
        return self.offset

    @property
    def remaining(self) -> int:
        """Number of bytes remaining to be read."""
        return max(0, len(self.data) - self.offset)


class BinaryWriter:
    """
    Big-endian writer over an in-memory buffer.

    The buffer is seekable so that headers can be reserved and
    back-patched once the size of the payload is known.
    """

    def __init__(self):
        self.buffer = io.BytesIO()

    def write_u8(self, value: int):
        self.buffer.write(_U8.pack(value))

    def write_i8(self, value: int):
        self.buffer.write(_I8.pack(value))

    def write_u16(self, value: int):
        self.buffer.write(_U16.pack(value))

    def write_i16(self, value: int):
        self.buffer.write(_I16.pack(value))

    def write_u32(self, value: int):
        self.buffer.write(_U32.pack(value))

    def write_f32(self, value: float):
        self.buffer.write(_F32.pack(value))

    def write_vec2(self, value: Vec2):
        self.buffer.write(_VEC2.pack(*value))

    def write_vec3(self, value: Vec3):
        self.buffer.write(_VEC3.pack(*value))

    def write_array(self, type_code: str, values):
        values = tuple(values)
        self.buffer.write(struct.pack(f'>{len(values)}{type_code}', *values))

    def write_bytes(self, data: bytes):
        self.buffer.write(data)

    def write_padding(self, size: int):
        self.buffer.write(b'\x00' * size)

    def seek(self, offset: int):
        self.buffer.seek(offset)

    def tell(self) -> int:
        return self.buffer.tell()

    def getvalue(self) -> bytes:
        return self.buffer.getvalue()
