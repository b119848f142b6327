"""
Bitcoin Light Mirror - Wire Utilities

This module provides the low level primitives shared by the header,
transaction and proof codecs: exact reads from a stream, Bitcoin compact
size integers and double SHA256.
"""

import struct
from typing import BinaryIO

from bitcoinlib.encoding import double_sha256 as _double_sha256

from .exceptions import DecodeError, TruncatedStreamError


HASH_SIZE = 32
ZERO_HASH = b'\x00' * HASH_SIZE

# Integer field ranges of the wire format
INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
UINT32_MAX = (1 << 32) - 1
UINT64_MAX = (1 << 64) - 1


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """
    Read exactly `size` bytes from a stream.
    
    Args:
        stream: Readable binary stream
        size: Number of bytes to read
        
    Returns:
        The bytes read
        
    Raises:
        TruncatedStreamError: If the stream ends early
    """
    data = stream.read(size)
    if data is None:
        data = b''
    if len(data) != size:
        raise TruncatedStreamError(size, len(data))
    return data


def read_uint8(stream: BinaryIO) -> int:
    return read_exact(stream, 1)[0]


def read_uint32(stream: BinaryIO) -> int:
    return struct.unpack('<I', read_exact(stream, 4))[0]


def read_int32(stream: BinaryIO) -> int:
    return struct.unpack('<i', read_exact(stream, 4))[0]


def read_uint64(stream: BinaryIO) -> int:
    return struct.unpack('<Q', read_exact(stream, 8))[0]


def serialize_compact_size(n: int) -> bytes:
    """
    Serialize integer as Bitcoin compact size.
    
    Args:
        n: Integer to serialize
        
    Returns:
        Compact size encoded bytes
    """
    if n < 0:
        raise ValueError("Compact size cannot be negative")
    if n < 0xfd:
        return struct.pack('<B', n)
    elif n <= 0xffff:
        return b'\xfd' + struct.pack('<H', n)
    elif n <= 0xffffffff:
        return b'\xfe' + struct.pack('<I', n)
    elif n <= 0xffffffffffffffff:
        return b'\xff' + struct.pack('<Q', n)
    raise ValueError("Compact size exceeds 64 bits")


def read_compact_size(stream: BinaryIO) -> int:
    """
    Read a Bitcoin compact size from a stream.
    
    Non-canonical encodings (a wider form than the value needs) are
    rejected, matching the reference node behaviour.
    
    Args:
        stream: Readable binary stream
        
    Returns:
        Decoded integer
    """
    first_byte = read_uint8(stream)
    
    if first_byte < 0xfd:
        return first_byte
    elif first_byte == 0xfd:
        value = struct.unpack('<H', read_exact(stream, 2))[0]
        minimum = 0xfd
    elif first_byte == 0xfe:
        value = struct.unpack('<I', read_exact(stream, 4))[0]
        minimum = 0x10000
    else:  # 0xff
        value = read_uint64(stream)
        minimum = 0x100000000
    
    if value < minimum:
        raise DecodeError(
            f"Non-canonical compact size: {value} encoded with prefix 0x{first_byte:02x}"
        )
    return value


def read_var_bytes(stream: BinaryIO, max_size: int, field_name: str = "value") -> bytes:
    """
    Read a compact size prefixed byte string.
    
    Args:
        stream: Readable binary stream
        max_size: Largest acceptable length
        field_name: Name used in the error message
        
    Returns:
        The payload bytes
    """
    length = read_compact_size(stream)
    if length > max_size:
        raise DecodeError(f"{field_name} is larger than the max allowed size [count {length}, max {max_size}]")
    return read_exact(stream, length)


def serialize_var_bytes(data: bytes) -> bytes:
    """Serialize bytes with a compact size length prefix."""
    return serialize_compact_size(len(data)) + data


def double_sha256(data: bytes) -> bytes:
    """
    Calculate double SHA256 hash (used for transaction IDs and block hashes).
    
    Args:
        data: Data to hash
        
    Returns:
        Double SHA256 hash
    """
    return _double_sha256(data)


def hash_to_hex(hash_bytes: bytes) -> str:
    """Render an internal byte order hash in RPC display order."""
    return hash_bytes[::-1].hex()


def hex_to_hash(hex_str: str) -> bytes:
    """
    Convert a display order hash string to internal byte order.
    
    Args:
        hex_str: 64 character hex string as shown by RPC and explorers
        
    Returns:
        32-byte hash in internal byte order
    """
    data = bytes.fromhex(hex_str.strip())
    if len(data) != HASH_SIZE:
        raise ValueError(f"Hash must be {HASH_SIZE} bytes, got {len(data)}")
    return data[::-1]
