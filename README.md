# gridphys

gridphys is a small two-dimensional physics room. Circles and squares move
inside a square room and bounce off its walls. A uniform spatial grid finds the
bodies that may touch. When two bodies overlap, each one is pushed away from the
other by a fixed acceleration.

The package has four modules:

- `gridphys.engine`: the room, its entities and a single simulation tick
- `gridphys.protocol`: encodes and decodes the binary packets that the server sends
- `gridphys.simulate`: fills a room with random entities and runs it, printing
  how long each tick takes
- `gridphys.server`: runs a room and streams its state to WebSocket clients

## Installation

```
pip install .
```

To install the test tools and run the tests:

```
pip install ".[test]"
pytest
```

## Using the engine

```python
from gridphys.engine import Room, RoomConfig, EntitySpec, BodyType

room = Room(RoomConfig())
room.create_entities([
    EntitySpec(x=100.0, y=100.0, velocity_x=1.0, velocity_y=0.5,
               max_velocity_x=2.0, max_velocity_y=2.0,
               radius=4.0, body_type=BodyType.CIRCLE),
])
room.update()
for entity in room.live_entities():
    print(entity.index, entity.x, entity.y)
```

`RoomConfig` holds the room's settings. Its defaults are:

- a room size of 1024
- a 64 × 64 grid
- at most 10000 entities
- at most 50 free slots waiting for reuse
- a collision acceleration of 0.1
- friction and gravity turned off
- a pause of 0.016 s between ticks

`RoomConfig` raises `ValueError` when `room_size`, `grid_dimension` or
`threads` is not positive.

Each call to `Room.update()` does two things. First it moves every movable
entity: it clamps the entity's velocity to its maximum velocity, adds the
velocity to its position, and reflects the entity off the walls. Then it looks
at every grid cell that holds two or more entities. For each pair of entities in
such a cell whose bodies overlap, it calls `manage_collision`. The overlap test
is `bodies_overlap`. It handles circle–circle, circle–square and square–square
pairs. For a square, `radius` is half of the side length.

An entity does not move when both of its maximum velocities are zero.

`Room.remove_entities` marks entities as removed and frees their indices.
`Room.create_entities` reuses freed indices before it appends new ones. Each of
these errors raises an exception:

| Case | Exception |
| --- | --- |
| Creating an entity beyond `max_entities` | `OverflowError` |
| Having more than `max_replacements` freed indices waiting | `OverflowError` |
| Removing an entity that is already removed | `ValueError` |

These methods let you inspect the grid:

- `Room.cell_members(position)` gives the entities in one cell.
- `Room.collision_positions()` gives the cells that are shared by two or more entities.

A position is encoded as `(cell_y << encoding_bits) | cell_x`.

`Room.chunks` splits the entity list into at most `threads` contiguous ranges,
using `chunk_ranges`. `update` works through these ranges one after another in a
single thread.

## Command-line tools

To run a room of random entities and print the time each tick takes, in
milliseconds:

```
gridphys-simulate --entities 2000 --ticks 100 --seed 1
```

| Option | Default | Meaning |
| --- | --- | --- |
| `--entities` | 10000 | Number of entities, from 0 to 10000 |
| `--ticks` | none (runs until interrupted) | Number of ticks to run |
| `--tick-time` | 0.016 | Seconds to pause between ticks |
| `--seed` | none | Random seed |
| `--body-type` | `circle` | `circle`, `square` or `random` |

To run the WebSocket server:

```
gridphys-server
```

| Option | Default | Meaning |
| --- | --- | --- |
| `--host` | `127.0.0.1` | Address to listen on |
| `--port` | 8080 | Port to listen on |
| `--entities` | 10000 | Number of entities, from 1 to 10000 |
| `--ticks` | none (runs until interrupted) | Number of ticks to run |
| `--seed` | none | Random seed |

The server builds its room with `demo_room`:

1. It creates random entities, each with a shape chosen at random.
2. It removes the first of them.
3. Its index is reused for a static square of radius 100 at the centre of the room.

## Packets

A client receives a hello packet when it connects. This packet has:

- a leading byte `0`
- the room size as a little-endian f32
- the grid dimension as a little-endian u32

After each tick the server sends a state packet. This packet has a leading byte
`1`, followed by one 17-byte record per entity slot. Each record holds:

- the index (u32)
- x, y and radius (f32)
- the body type (u8)

All values in both packets are little-endian.

To build and read these packets, use the functions in `gridphys.protocol`:

- `encode_hello` and `decode_hello`
- `encode_state` and `decode_state`

The server gives each client a queue through a `Broadcaster`. The queue holds 16
packets. When a client falls behind, the oldest packet in its queue is dropped.

## What it does not do

- The package has no viewer. It only sends packets, and a client must draw them itself.
- The server ignores any message that a client sends to it.
- Each state packet holds a record for every entity slot, including slots whose
  entity has been removed and not yet replaced.
- Everything runs on one thread. The `threads` setting only decides how many
  chunks the entity list is split into.