"""Two-dimensional entity physics on a uniform spatial grid."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum


class BodyType(IntEnum):
    """Shape of an entity's collision body."""

    SQUARE = 0
    CIRCLE = 1


@dataclass(frozen=True)
class RoomConfig:
    """Tunable parameters of a room."""

    room_size: float = 1024.0
    grid_dimension: int = 64
    threads: int = 16
    max_entities: int = 10000
    max_replacements: int = 50
    friction: bool = False
    friction_constant: float = 0.99
    gravity: bool = False
    gravity_constant: float = 0.2
    collision_acceleration: float = 0.1
    tick_time: float = 0.016

    def __post_init__(self) -> None:
        if self.room_size <= 0:
            raise ValueError("room_size must be positive")
        if self.grid_dimension <= 0:
            raise ValueError("grid_dimension must be positive")
        if self.threads <= 0:
            raise ValueError("threads must be positive")

    @property
    def encoding_bits(self) -> int:
        """Bits used for the x part of an encoded cell position."""
        return self.grid_dimension.bit_length() - 1

    @property
    def grid_area(self) -> int:
        return self.grid_dimension * self.grid_dimension

    @property
    def grid_ratio(self) -> float:
        """Grid cells per unit of room length."""
        return self.grid_dimension / self.room_size


@dataclass
class EntitySpec:
    """Initial state of an entity to be created in a room."""

    x: float
    y: float
    velocity_x: float
    velocity_y: float
    max_velocity_x: float
    max_velocity_y: float
    radius: float
    body_type: BodyType = BodyType.CIRCLE


@dataclass(eq=False)
class Entity:
    """A body living in a room."""

    index: int
    x: float
    y: float
    velocity_x: float
    velocity_y: float
    max_velocity_x: float
    max_velocity_y: float
    radius: float
    body_type: BodyType = BodyType.CIRCLE
    grid_pos_x: int = 0
    grid_pos_y: int = 0
    grid_body: int = 0
    replace: bool = field(default=False)

    @property
    def movable(self) -> bool:
        return self.max_velocity_x != 0.0 or self.max_velocity_y != 0.0


def chunk_ranges(length: int, parts: int) -> list[tuple[int, int]]:
    """Split ``range(length)`` into at most ``parts`` contiguous half-open ranges."""
    if length > parts:
        size, remainder = divmod(length, parts)
        ranges = []
        start = 0
        for chunk in range(parts):
            end = start + size + (1 if chunk < remainder else 0)
            ranges.append((start, end))
            start = end
        return ranges
    return [(i, i + 1) for i in range(length)]


def _push_apart(a_pos: float, b_pos: float, a_max: float, b_max: float, acceleration: float) -> tuple[float, float]:
    """Velocity changes along one axis for a colliding pair."""
    a_delta = b_delta = 0.0
    sign = -1.0 if a_pos < b_pos else 1.0
    if a_max != 0.0:
        a_delta = sign * acceleration
    if b_max != 0.0:
        b_delta = -sign * acceleration
    return a_delta, b_delta


def manage_collision(entity: Entity, other: Entity, acceleration: float) -> None:
    """Accelerate two colliding entities away from each other."""
    dx_a, dx_b = _push_apart(entity.x, other.x, entity.max_velocity_x, other.max_velocity_x, acceleration)
    entity.velocity_x += dx_a
    other.velocity_x += dx_b
    dy_a, dy_b = _push_apart(entity.y, other.y, entity.max_velocity_y, other.max_velocity_y, acceleration)
    entity.velocity_y += dy_a
    other.velocity_y += dy_b


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def bodies_overlap(entity: Entity, other: Entity) -> bool:
    """Whether the collision bodies of two entities intersect."""
    kinds = int(entity.body_type) + int(other.body_type)
    if kinds == 2:
        dx = other.x - entity.x
        dy = other.y - entity.y
        reach = entity.radius + other.radius
        return dx * dx + dy * dy < reach * reach
    if kinds == 1:
        square, circle = (entity, other) if entity.body_type == BodyType.SQUARE else (other, entity)
        cx = _clamp(circle.x, square.x - square.radius, square.x + square.radius)
        cy = _clamp(circle.y, square.y - square.radius, square.y + square.radius)
        return (cx - circle.x) ** 2 + (cy - circle.y) ** 2 < circle.radius * circle.radius
    reach = entity.radius + other.radius
    return abs(other.x - entity.x) < reach and abs(other.y - entity.y) < reach


def _to_cell(value: float) -> int:
    """Truncate to a non-negative cell coordinate, saturating at zero."""
    if math.isnan(value) or value <= 0:
        return 0
    return int(value)


class Room:
    """A square room of entities indexed by a spatial grid."""

    def __init__(self, config: RoomConfig | None = None) -> None:
        self.config = config if config is not None else RoomConfig()
        self.entities: list[Entity] = []
        self.replacement_queue: list[int] = []
        self.chunks: list[tuple[int, int]] = []
        self.tick = 0
        self._grid: list[set[int]] = [set() for _ in range(self.config.grid_area)]
        self._collisions: set[int] = set()

    def _encode(self, cell_x: int, cell_y: int) -> int:
        return (cell_y << self.config.encoding_bits) | cell_x

    def _occupy(self, position: int, index: int) -> None:
        if position < self.config.grid_area:
            cell = self._grid[position]
            if len(cell) == 1:
                self._collisions.add(position)
            cell.add(index)

    def _vacate(self, position: int, index: int) -> None:
        if position < self.config.grid_area:
            cell = self._grid[position]
            if len(cell) == 2:
                self._collisions.discard(position)
            cell.discard(index)

    def _shift_body(self, y_bound: int, x_bound: int, y_add: int, x_add: int,
                    y_del: int, x_del: int, index: int) -> None:
        for y_offset in range(y_bound):
            for x_offset in range(x_bound):
                self._occupy(self._encode(x_add + x_offset, y_add + y_offset), index)
                self._vacate(self._encode(x_del + x_offset, y_del + y_offset), index)

    def _body_cells(self, entity: Entity) -> Iterator[int]:
        for cell_y in range(entity.grid_pos_y, entity.grid_pos_y + entity.grid_body):
            for cell_x in range(entity.grid_pos_x, entity.grid_pos_x + entity.grid_body):
                yield self._encode(cell_x, cell_y)

    def _update_chunks(self) -> None:
        self.chunks = chunk_ranges(len(self.entities), self.config.threads)

    def create_entities(self, specs: Iterable[EntitySpec]) -> list[Entity]:
        """Add entities, reusing freed slots first; return the new entities."""
        ratio = self.config.grid_ratio
        created = []
        for spec in specs:
            if not isinstance(spec, EntitySpec):
                spec = EntitySpec(*spec)
            if self.replacement_queue:
                index = self.replacement_queue[0]
                self.replacement_queue[0] = self.replacement_queue[-1]
                self.replacement_queue.pop()
            else:
                if len(self.entities) >= self.config.max_entities:
                    raise OverflowError(f"room holds at most {self.config.max_entities} entities")
                index = len(self.entities)
                self.entities.append(None)  # type: ignore[arg-type]
            entity = Entity(
                index=index,
                x=spec.x,
                y=spec.y,
                velocity_x=spec.velocity_x,
                velocity_y=spec.velocity_y,
                max_velocity_x=spec.max_velocity_x,
                max_velocity_y=spec.max_velocity_y,
                radius=spec.radius,
                body_type=BodyType(spec.body_type),
                grid_pos_x=_to_cell((spec.x - spec.radius) * ratio),
                grid_pos_y=_to_cell((spec.y - spec.radius) * ratio),
                grid_body=math.ceil(spec.radius * 2.0 * ratio) + 1,
            )
            self.entities[index] = entity
            for position in self._body_cells(entity):
                self._occupy(position, index)
            created.append(entity)
        self._update_chunks()
        return created

    def remove_entities(self, entities: Iterable[Entity]) -> None:
        """Take entities out of the room, freeing their slots for reuse."""
        for entity in entities:
            if entity.replace:
                raise ValueError(f"entity {entity.index} is already removed")
            if len(self.replacement_queue) >= self.config.max_replacements:
                raise OverflowError(
                    f"at most {self.config.max_replacements} free slots may be pending"
                )
            entity.replace = True
            self.replacement_queue.append(entity.index)
            for position in self._body_cells(entity):
                self._vacate(position, entity.index)
        self._update_chunks()

    def _advance(self, entity: Entity) -> None:
        cfg = self.config
        if cfg.gravity:
            entity.velocity_y += cfg.gravity_constant
        if cfg.friction:
            entity.velocity_x *= cfg.friction_constant
            entity.velocity_y *= cfg.friction_constant
        if entity.velocity_x > entity.max_velocity_x:
            entity.velocity_x = entity.max_velocity_x
        elif entity.velocity_x < -entity.max_velocity_x:
            entity.velocity_x = -entity.max_velocity_x
        if entity.velocity_y > entity.max_velocity_y:
            entity.velocity_y = entity.max_velocity_y
        elif entity.velocity_y < -entity.max_velocity_y:
            entity.velocity_y = -entity.max_velocity_y
        entity.x += entity.velocity_x
        entity.y += entity.velocity_y
        if entity.x - entity.radius < 0.0:
            entity.x = entity.radius
            entity.velocity_x = -entity.velocity_x
        if entity.y - entity.radius < 0.0:
            entity.y = entity.radius
            entity.velocity_y = -entity.velocity_y
        if entity.x + entity.radius > cfg.room_size:
            entity.x = cfg.room_size - entity.radius
            entity.velocity_x = -entity.velocity_x
        if entity.y + entity.radius > cfg.room_size:
            entity.y = cfg.room_size - entity.radius
            entity.velocity_y = -entity.velocity_y
        new_x = _to_cell((entity.x - entity.radius) * cfg.grid_ratio)
        new_y = _to_cell((entity.y - entity.radius) * cfg.grid_ratio)
        if new_x != entity.grid_pos_x or new_y != entity.grid_pos_y:
            self._relocate(entity, new_x, new_y)

    def _relocate(self, entity: Entity, new_x: int, new_y: int) -> None:
        old_x, old_y, body, index = entity.grid_pos_x, entity.grid_pos_y, entity.grid_body, entity.index
        shift_x, right = abs(new_x - old_x), new_x > old_x
        shift_y, down = abs(new_y - old_y), new_y > old_y
        if shift_x > body or shift_y > body:
            self._shift_body(body, body, new_y, new_x, old_y, old_x, index)
        elif shift_x == 0:
            if down:
                self._shift_body(shift_y, body, old_y + body, new_x, old_y, new_x, index)
            else:
                self._shift_body(shift_y, body, new_y, new_x, new_y + body, new_x, index)
        elif shift_y == 0:
            if right:
                self._shift_body(body, shift_x, new_y, old_x + body, new_y, old_x, index)
            else:
                self._shift_body(body, shift_x, new_y, new_x, new_y, new_x + body, index)
        else:
            if down:
                self._shift_body(shift_y, body, old_y + body, new_x, old_y, old_x, index)
            else:
                self._shift_body(shift_y, body, new_y, new_x, new_y + body, old_x, index)
            if right:
                self._shift_body(body - shift_y, shift_x, new_y, old_x + body, new_y, old_x, index)
            else:
                self._shift_body(body - shift_y, shift_x, new_y, new_x, new_y, new_x + body, index)
        entity.grid_pos_x = new_x
        entity.grid_pos_y = new_y

    def update(self) -> None:
        """Advance the room by one tick: move entities, then resolve collisions."""
        for start, end in self.chunks:
            for entity in self.entities[start:end]:
                if not entity.replace and entity.movable:
                    self._advance(entity)
        acceleration = self.config.collision_acceleration
        for position in sorted(self._collisions):
            seen: list[Entity] = []
            for index in sorted(self._grid[position]):
                entity = self.entities[index]
                for other in seen:
                    if bodies_overlap(entity, other):
                        manage_collision(entity, other, acceleration)
                seen.append(entity)
        self.tick += 1

    def cell_members(self, position: int) -> frozenset[int]:
        """Indices of the entities occupying an encoded grid position."""
        if not 0 <= position < self.config.grid_area:
            raise IndexError(f"grid position {position} out of range")
        return frozenset(self._grid[position])

    def collision_positions(self) -> frozenset[int]:
        """Encoded grid positions currently shared by two or more entities."""
        return frozenset(self._collisions)

    def live_entities(self) -> Iterator[Entity]:
        """Entities that have not been removed."""
        return (entity for entity in self.entities if not entity.replace)