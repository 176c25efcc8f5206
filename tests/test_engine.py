import random

import pytest

from gridphys.engine import (
    BodyType,
    Entity,
    EntitySpec,
    Room,
    RoomConfig,
    bodies_overlap,
    chunk_ranges,
    manage_collision,
)


def make(x, y, radius=2.0, body_type=BodyType.CIRCLE, max_v=2.0):
    return Entity(
        index=0, x=x, y=y, velocity_x=0.0, velocity_y=0.0,
        max_velocity_x=max_v, max_velocity_y=max_v, radius=radius, body_type=body_type,
    )


def expected_grid(room):
    bits = room.config.encoding_bits
    cells = {}
    for entity in room.live_entities():
        for cy in range(entity.grid_pos_y, entity.grid_pos_y + entity.grid_body):
            for cx in range(entity.grid_pos_x, entity.grid_pos_x + entity.grid_body):
                cells.setdefault((cy << bits) | cx, set()).add(entity.index)
    return cells


def test_config_derived_values():
    config = RoomConfig()
    assert config.encoding_bits == 6
    assert config.grid_area == 4096
    assert config.grid_ratio == pytest.approx(64 / 1024)


def test_chunk_ranges_small():
    assert chunk_ranges(3, 16) == [(0, 1), (1, 2), (2, 3)]
    assert chunk_ranges(0, 16) == []


@pytest.mark.parametrize("length", [17, 35, 100, 10000])
def test_chunk_ranges_cover_contiguously(length):
    ranges = chunk_ranges(length, 16)
    assert len(ranges) == 16
    assert ranges[0][0] == 0 and ranges[-1][1] == length
    for (_, end), (start, _) in zip(ranges, ranges[1:]):
        assert end == start
    sizes = [end - start for start, end in ranges]
    assert max(sizes) - min(sizes) <= 1


def test_manage_collision_both_movable():
    a, b = make(0.0, 5.0), make(1.0, 5.0)
    manage_collision(a, b, 0.1)
    assert a.velocity_x == pytest.approx(-0.1)
    assert b.velocity_x == pytest.approx(0.1)
    assert a.velocity_y == pytest.approx(0.1)
    assert b.velocity_y == pytest.approx(-0.1)


def test_manage_collision_immovable_first():
    a, b = make(0.0, 0.0, max_v=0.0), make(1.0, 1.0)
    manage_collision(a, b, 0.1)
    assert (a.velocity_x, a.velocity_y) == (0.0, 0.0)
    assert b.velocity_x == pytest.approx(0.1)
    assert b.velocity_y == pytest.approx(0.1)


def test_bodies_overlap_circles():
    assert not bodies_overlap(make(0.0, 0.0, 2.0), make(5.0, 0.0, 2.0))
    assert bodies_overlap(make(0.0, 0.0, 3.0), make(5.0, 0.0, 3.0))


def test_bodies_overlap_squares():
    a = make(0.0, 0.0, 2.0, BodyType.SQUARE)
    assert bodies_overlap(a, make(3.5, 3.5, 2.0, BodyType.SQUARE))
    assert not bodies_overlap(a, make(3.5, 4.5, 2.0, BodyType.SQUARE))


def test_bodies_overlap_square_and_circle_symmetric():
    square = make(0.0, 0.0, 2.0, BodyType.SQUARE)
    near = make(3.0, 0.0, 1.5)
    far = make(3.0, 3.0, 1.5)
    assert bodies_overlap(square, near) and bodies_overlap(near, square)
    assert not bodies_overlap(square, far) and not bodies_overlap(far, square)


def test_create_entity_occupies_its_body():
    room = Room()
    (entity,) = room.create_entities([EntitySpec(100.0, 100.0, 0.0, 0.0, 2.0, 2.0, 4.0)])
    assert entity.index == 0 and entity.movable
    for position, members in expected_grid(room).items():
        assert room.cell_members(position) == frozenset(members)
    assert room.collision_positions() == frozenset()
    assert room.chunks == [(0, 1)]


def test_overlap_creates_collision_positions_and_removal_clears():
    room = Room()
    a, b = room.create_entities([
        EntitySpec(100.0, 100.0, 0.0, 0.0, 2.0, 2.0, 4.0),
        EntitySpec(101.0, 100.0, 0.0, 0.0, 2.0, 2.0, 4.0),
    ])
    shared = {p for p, m in expected_grid(room).items() if len(m) >= 2}
    assert shared and room.collision_positions() == frozenset(shared)
    room.remove_entities([b])
    assert room.collision_positions() == frozenset()
    assert list(room.live_entities()) == [a]


def test_replacement_slot_order():
    room = Room()
    created = room.create_entities(
        [EntitySpec(200.0 + 50 * i, 200.0, 0.0, 0.0, 1.0, 1.0, 3.0) for i in range(3)]
    )
    room.remove_entities(created)
    assert room.replacement_queue == [0, 1, 2]
    first, second = room.create_entities([
        EntitySpec(300.0, 300.0, 0.0, 0.0, 1.0, 1.0, 3.0),
        EntitySpec(400.0, 400.0, 0.0, 0.0, 1.0, 1.0, 3.0),
    ])
    assert (first.index, second.index) == (0, 2)
    assert room.replacement_queue == [1]
    assert len(room.entities) == 3


def test_capacity_limits():
    room = Room(RoomConfig(max_entities=2, max_replacements=1))
    specs = [EntitySpec(100.0 * (i + 1), 100.0, 0.0, 0.0, 1.0, 1.0, 3.0) for i in range(2)]
    a, b = room.create_entities(specs)
    with pytest.raises(OverflowError):
        room.create_entities([EntitySpec(500.0, 500.0, 0.0, 0.0, 1.0, 1.0, 3.0)])
    room.remove_entities([a])
    with pytest.raises(OverflowError):
        room.remove_entities([b])
    with pytest.raises(ValueError):
        room.remove_entities([a])


def test_update_moves_and_clamps():
    room = Room()
    slow, fast, wall, fixed = room.create_entities([
        EntitySpec(100.0, 100.0, 1.0, 0.5, 2.0, 2.0, 3.0),
        EntitySpec(500.0, 500.0, 5.0, -5.0, 2.0, 2.0, 3.0),
        EntitySpec(4.5, 900.0, -1.0, 0.0, 2.0, 2.0, 4.0),
        EntitySpec(800.0, 200.0, 1.0, 1.0, 0.0, 0.0, 3.0),
    ])
    room.update()
    assert (slow.x, slow.y) == pytest.approx((101.0, 100.5))
    assert (fast.x, fast.y) == pytest.approx((502.0, 498.0))
    assert wall.x == pytest.approx(4.0) and wall.velocity_x == pytest.approx(1.0)
    assert (fixed.x, fixed.y) == (800.0, 200.0)
    assert room.tick == 1


def test_update_pushes_colliding_entities_apart():
    room = Room()
    left, right = room.create_entities([
        EntitySpec(300.0, 300.0, 0.0, 0.0, 2.0, 2.0, 5.0),
        EntitySpec(303.0, 300.0, 0.0, 0.0, 2.0, 2.0, 5.0),
    ])
    room.update()
    assert left.velocity_x < 0.0 < right.velocity_x


def test_grid_stays_consistent_while_moving():
    rng = random.Random(7)
    room = Room()
    room.create_entities([
        EntitySpec(rng.uniform(200, 800), rng.uniform(200, 800), rng.uniform(-2, 2),
                   rng.uniform(-2, 2), 2.0, 2.0, rng.uniform(2, 6), rng.choice(list(BodyType)))
        for _ in range(300)
    ])
    for _ in range(40):
        room.update()
    expected = expected_grid(room)
    for position in range(room.config.grid_area):
        assert room.cell_members(position) == frozenset(expected.get(position, set()))
    shared = {p for p, m in expected.items() if len(m) >= 2}
    assert room.collision_positions() == frozenset(shared)


def test_cell_members_out_of_range():
    room = Room()
    with pytest.raises(IndexError):
        room.cell_members(room.config.grid_area)