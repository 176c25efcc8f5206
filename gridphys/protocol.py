"""Binary packets sent from the simulation server to its clients.

Every packet starts with a one-byte tag. A hello packet (tag 0) carries the
room size as a little-endian f32 and the grid dimension as a little-endian
u32. A state packet (tag 1) carries one 17-byte record per entity: u32
index, f32 x, f32 y, f32 radius and a u8 body type.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable

from gridphys.engine import BodyType, Entity

_HELLO_TAG = 0
_STATE_TAG = 1
_HELLO = struct.Struct("<BfI")
_RECORD = struct.Struct("<IfffB")
_U32_MAX = 0xFFFFFFFF


def encode_hello(room_size: float, grid_dimension: int) -> bytes:
    """Build the packet that greets a newly connected client."""
    if not 0 <= grid_dimension <= _U32_MAX:
        raise ValueError(f"grid dimension {grid_dimension} does not fit in 32 bits")
    return _HELLO.pack(_HELLO_TAG, room_size, grid_dimension)


def decode_hello(data: bytes) -> tuple[float, int]:
    """Read a hello packet; return ``(room_size, grid_dimension)``."""
    if len(data) != _HELLO.size:
        raise ValueError(f"hello packet must be {_HELLO.size} bytes, got {len(data)}")
    tag, room_size, grid_dimension = _HELLO.unpack(data)
    if tag != _HELLO_TAG:
        raise ValueError(f"expected hello tag {_HELLO_TAG}, got {tag}")
    return room_size, grid_dimension


def encode_state(entities: Iterable[Entity]) -> bytes:
    """Build a packet holding the position, size and shape of each entity."""
    parts = [bytes([_STATE_TAG])]
    for entity in entities:
        if not 0 <= entity.index <= _U32_MAX:
            raise ValueError(f"entity index {entity.index} does not fit in 32 bits")
        parts.append(
            _RECORD.pack(entity.index, entity.x, entity.y, entity.radius, int(entity.body_type))
        )
    return b"".join(parts)


def decode_state(data: bytes) -> list[tuple[int, float, float, float, BodyType]]:
    """Read a state packet; return ``(index, x, y, radius, body_type)`` records."""
    if not data:
        raise ValueError("empty packet")
    if data[0] != _STATE_TAG:
        raise ValueError(f"expected state tag {_STATE_TAG}, got {data[0]}")
    body = data[1:]
    if len(body) % _RECORD.size:
        raise ValueError(
            f"state body of {len(body)} bytes is not a multiple of {_RECORD.size}"
        )
    return [
        (index, x, y, radius, BodyType(kind))
        for index, x, y, radius, kind in _RECORD.iter_unpack(body)
    ]