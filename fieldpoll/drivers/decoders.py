"""
Register Decoders

Pure functions that turn raw register, bit and byte data into typed field
values. Which decoder applies is looked up by (device family, field tag).
None of these functions mutate their input.
"""

import math
import struct
from collections.abc import Callable, Sequence
from typing import Any

from fieldpoll.drivers.base import DeviceFamily
from fieldpoll.errors import DecodeError

# Raw robot-B joint encoding is radians * 5000
JOINT_SCALE = 5000.0

WORD_BITS = 16

# Wildcard tag for families that decode every tag the same way
ANY_TAG = "*"


def to_signed16(registers: Sequence[int]) -> list[int]:
    """Reinterpret unsigned 16-bit words as two's-complement signed values"""
    count = len(registers)
    try:
        return list(struct.unpack(f'>{count}h', struct.pack(f'>{count}H', *registers)))
    except struct.error as e:
        raise DecodeError(f"Register value out of 16-bit range: {e}") from e


def to_unsigned16(registers: Sequence[int]) -> list[int]:
    """Copy raw 16-bit words, checking their range"""
    for value in registers:
        if not 0 <= value <= 0xFFFF:
            raise DecodeError(f"Register value out of 16-bit range: {value}")
    return list(registers)


def to_degrees(registers: Sequence[int]) -> list[float]:
    """
    Convert robot-B joint registers to degrees.

    Each word is a signed 16-bit value of radians * 5000.
    """
    return [value / JOINT_SCALE * 180 / math.pi for value in to_signed16(registers)]


def word_to_channel_bits(word: int) -> str:
    """
    Render one register as a channel-ordered bit string.

    Binary text is most-significant-bit first; the vendor stores channel 0 in
    the least significant bit, so the text is padded to 16 characters and
    reversed. Text that already has 16 or more characters is only reversed.
    """
    binary = format(word, 'b')
    if len(binary) >= WORD_BITS:
        return binary[::-1]
    return binary.zfill(WORD_BITS)[::-1]


def to_channel_bits(registers: Sequence[int]) -> str:
    """Concatenate channel bit strings in register order"""
    for value in registers:
        if value < 0:
            raise DecodeError(f"Negative register value: {value}")
    return ''.join(word_to_channel_bits(word) for word in registers)


def to_float32_pairs(registers: Sequence[int]) -> list[float]:
    """
    Rebuild IEEE-754 singles from register pairs.

    For each pair the first register is the low half and the second the high
    half of the 32-bit word, read as little-endian bytes.
    """
    if len(registers) % 2:
        raise DecodeError(f"REAL data needs an even register count, got {len(registers)}")
    unsigned = to_unsigned16(registers)
    values = []
    for i in range(0, len(unsigned), 2):
        combined = (unsigned[i + 1] << 16) | unsigned[i]
        values.append(struct.unpack('<f', struct.pack('<I', combined))[0])
    return values


def to_float32(values: Sequence[float]) -> list[float]:
    """Narrow native floats to single precision"""
    try:
        return [struct.unpack('<f', struct.pack('<f', float(v)))[0] for v in values]
    except (TypeError, ValueError, struct.error) as e:
        raise DecodeError(f"Non-numeric joint value: {e}") from e


def to_bools(bits: Sequence[Any]) -> list[bool]:
    return [bool(bit) for bit in bits]


def to_ints(values: Sequence[Any]) -> list[int]:
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Non-integer value: {e}") from e


def to_byte_list(data: bytes | bytearray) -> list[int]:
    """Expose an S7 byte block as a list of 0-255 values"""
    return list(bytes(data))


Decoder = Callable[[Any], Any]

DECODERS: dict[tuple[DeviceFamily, str], Decoder] = {
    # Modbus robot variant A
    (DeviceFamily.AUBO, "Joint"): to_signed16,
    (DeviceFamily.AUBO, "DI"): to_bools,
    (DeviceFamily.AUBO, "DO"): to_bools,
    (DeviceFamily.AUBO, "AO"): to_unsigned16,

    # Modbus robot variant B
    (DeviceFamily.ELITE, "Joint"): to_degrees,
    (DeviceFamily.ELITE, "DI"): to_channel_bits,
    (DeviceFamily.ELITE, "DO"): to_channel_bits,

    # Generic Modbus-TCP
    (DeviceFamily.MODBUS_TCP, "ReadCoils"): to_bools,
    (DeviceFamily.MODBUS_TCP, "ReadInputs"): to_bools,
    (DeviceFamily.MODBUS_TCP, "ReadHoldingRegisters"): to_signed16,
    (DeviceFamily.MODBUS_TCP, "ReadInputRegisters"): to_signed16,

    # XinJie
    (DeviceFamily.XINJIE, "REAL"): to_float32_pairs,
    (DeviceFamily.XINJIE, "INT"): to_signed16,

    # Siemens S7
    (DeviceFamily.SIEMENS_1200, ANY_TAG): to_byte_list,

    # Robot RPC
    (DeviceFamily.FAIRINO, "Joint"): to_float32,
    (DeviceFamily.FAIRINO, "DI"): to_ints,
}


def get_decoder(family: DeviceFamily, tag: str) -> Decoder:
    """
    Look up the decoder for a field tag.

    Raises:
        DecodeError: If no decoder is registered for the family and tag
    """
    decoder = DECODERS.get((family, tag)) or DECODERS.get((family, ANY_TAG))
    if decoder is None:
        raise DecodeError(f"No decoder for {family.value} tag {tag!r}", tag=tag)
    return decoder


def decode(family: DeviceFamily, tag: str, raw: Any) -> Any:
    """Decode raw data for one field tag of a family"""
    return get_decoder(family, tag)(raw)
