"""WebSocket server that streams a running room to every connected client."""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
import time

import websockets
from websockets.exceptions import ConnectionClosed

from gridphys.engine import BodyType, EntitySpec, Room, RoomConfig
from gridphys.protocol import encode_hello, encode_state
from gridphys.simulate import random_entities

_DEFAULTS = RoomConfig()
_OBSTACLE_RADIUS = 100.0


class Broadcaster:
    """Fan packets out to subscriber queues, dropping the oldest when one lags."""

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._queues: list[asyncio.Queue[bytes]] = []

    def subscribe(self) -> asyncio.Queue[bytes]:
        """Return a new queue that receives every packet published from now on."""
        queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=self.capacity)
        self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[bytes]) -> None:
        """Stop delivering packets to ``queue``."""
        try:
            self._queues.remove(queue)
        except ValueError:
            raise ValueError("queue is not subscribed") from None

    def publish(self, packet: bytes) -> int:
        """Deliver ``packet`` to every subscriber; return how many received it."""
        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(packet)
        return len(self._queues)


def demo_room(rng: random.Random | None = None, count: int | None = None) -> Room:
    """Build the demonstration room.

    It holds ``count`` random entities of random shape; the first of them is
    then removed and its slot reused by a large static square in the centre.
    """
    count = _DEFAULTS.max_entities if count is None else count
    if count < 1:
        raise ValueError("count must be at least 1")
    room = Room()
    room.create_entities(random_entities(count, rng, None))
    room.remove_entities([room.entities[0]])
    centre = room.config.room_size / 2.0
    room.create_entities(
        [EntitySpec(centre, centre, 0.0, 0.0, 0.0, 0.0, _OBSTACLE_RADIUS, BodyType.SQUARE)]
    )
    return room


async def tick_loop(
    room: Room,
    broadcaster: Broadcaster,
    ticks: int | None = None,
    tick_time: float | None = None,
) -> int:
    """Update ``room`` and publish its state each tick; return the ticks run."""
    if ticks is not None and ticks < 0:
        raise ValueError("ticks must not be negative")
    pause = room.config.tick_time if tick_time is None else tick_time
    if pause < 0:
        raise ValueError("tick_time must not be negative")
    done = 0
    while ticks is None or done < ticks:
        started = time.perf_counter()
        room.update()
        elapsed = time.perf_counter() - started
        print(f"{elapsed * 1000:.3f}ms", flush=True)
        broadcaster.publish(encode_state(room.entities))
        done += 1
        await asyncio.sleep(pause)
    return done


async def _stream(websocket, hello: bytes, broadcaster: Broadcaster) -> None:
    queue = broadcaster.subscribe()
    closed = asyncio.ensure_future(websocket.wait_closed())
    try:
        await websocket.send(hello)
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, closed}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                break
            await websocket.send(getter.result())
    except ConnectionClosed:
        pass
    finally:
        closed.cancel()
        broadcaster.unsubscribe(queue)


async def serve(
    room: Room,
    host: str = "127.0.0.1",
    port: int = 8080,
    ticks: int | None = None,
) -> int:
    """Run ``room`` while streaming it over WebSocket; return the ticks run."""
    broadcaster = Broadcaster()
    hello = encode_hello(room.config.room_size, room.config.grid_dimension)

    async def handler(websocket, *_):
        await _stream(websocket, hello, broadcaster)

    async with websockets.serve(handler, host, port):
        print(f"Server running at ws://{host}:{port}", flush=True)
        return await tick_loop(room, broadcaster, ticks)


def _parse(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gridphys-server",
        description="Serve a live grid physics room to WebSocket clients.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument("--entities", type=int, default=_DEFAULTS.max_entities,
                        help="number of random entities to create")
    parser.add_argument("--ticks", type=int, default=None,
                        help="number of ticks to run (default: run until interrupted)")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)
    if not 1 <= args.entities <= _DEFAULTS.max_entities:
        parser.error(f"--entities must be between 1 and {_DEFAULTS.max_entities}")
    if args.ticks is not None and args.ticks < 0:
        parser.error("--ticks must not be negative")
    if not 0 <= args.port <= 65535:
        parser.error("--port must be between 0 and 65535")
    return args


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    args = _parse(sys.argv[1:] if argv is None else argv)
    room = demo_room(random.Random(args.seed), args.entities)
    try:
        asyncio.run(serve(room, args.host, args.port, args.ticks))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())