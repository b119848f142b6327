"""
Bitcoin Light Mirror - Address Type

Commitments carry 20-byte account addresses for the chain the block is being
mirrored to. This module decodes them from raw bytes and renders them in the
mixed-case checksum form (EIP-55) used by that chain's tooling.
"""

from dataclasses import dataclass
from typing import Union

from Crypto.Hash import keccak


ADDRESS_SIZE = 20


@dataclass(frozen=True)
class Address:
    """A 20-byte address."""
    value: bytes = b'\x00' * ADDRESS_SIZE

    def __post_init__(self):
        if len(self.value) != ADDRESS_SIZE:
            raise ValueError(f"Address must be {ADDRESS_SIZE} bytes")

    @classmethod
    def from_hex(cls, hex_str: str) -> 'Address':
        """Parse a 40 character hex address, with or without the 0x prefix."""
        hex_str = hex_str.strip()
        if hex_str[:2].lower() == '0x':
            hex_str = hex_str[2:]
        return cls(bytes.fromhex(hex_str))

    def is_zero(self) -> bool:
        return self.value == b'\x00' * ADDRESS_SIZE

    def to_checksum(self) -> str:
        """
        Render the address with the EIP-55 mixed-case checksum.

        Each hex letter is upper-cased when the matching nibble of
        keccak256(lowercase hex) is 8 or greater.
        """
        lower = self.value.hex()
        digest = keccak.new(digest_bits=256, data=lower.encode('ascii')).hexdigest()
        chars = [
            c.upper() if c.isalpha() and int(digest[i], 16) >= 8 else c
            for i, c in enumerate(lower)
        ]
        return '0x' + ''.join(chars)

    def __str__(self) -> str:
        return self.to_checksum()


ZERO_ADDRESS = Address()


def bytes_to_address(data: Union[bytes, bytearray]) -> Address:
    """
    Convert raw bytes to an Address.

    Inputs longer than 20 bytes keep their last 20 bytes; shorter inputs
    are left padded with zeros.
    """
    data = bytes(data)[-ADDRESS_SIZE:]
    return Address(data.rjust(ADDRESS_SIZE, b'\x00'))
