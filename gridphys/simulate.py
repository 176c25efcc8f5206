"""Headless driver that fills a room with random entities and ticks it."""

from __future__ import annotations

import argparse
import random
import sys
import time
from collections.abc import Callable

from gridphys.engine import BodyType, EntitySpec, Room, RoomConfig

_DEFAULTS = RoomConfig()
_SPEED_RANGE = (-2.0, 2.0)
_RADIUS_RANGE = (2.0, 6.0)
_MAX_VELOCITY = 2.0


def random_entities(
    count: int,
    rng: random.Random | None = None,
    body_type: BodyType | None = BodyType.CIRCLE,
) -> list[EntitySpec]:
    """Make ``count`` randomly placed, randomly moving entity specs.

    Positions lie inside the default room, velocities in [-2, 2), radii in
    [2, 6), and every entity may move at up to 2 units per tick on each axis.
    With ``body_type`` of ``None`` each entity's shape is drawn at random.
    """
    if count < 0:
        raise ValueError("count must not be negative")
    rng = rng if rng is not None else random.Random()
    size = _DEFAULTS.room_size
    specs = []
    for _ in range(count):
        x = rng.uniform(0.0, size)
        y = rng.uniform(0.0, size)
        vx = rng.uniform(*_SPEED_RANGE)
        vy = rng.uniform(*_SPEED_RANGE)
        radius = rng.uniform(*_RADIUS_RANGE)
        kind = BodyType(round(rng.random())) if body_type is None else BodyType(body_type)
        specs.append(EntitySpec(x, y, vx, vy, _MAX_VELOCITY, _MAX_VELOCITY, radius, kind))
    return specs


def run(
    room: Room,
    ticks: int | None = None,
    tick_time: float | None = None,
    report: Callable[[float], object] | None = None,
) -> int:
    """Tick ``room`` repeatedly, forever when ``ticks`` is ``None``.

    After each update ``report`` receives the seconds the update took, then the
    loop sleeps for ``tick_time`` (the room's configured pause by default).
    Returns the number of ticks run.
    """
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
        if report is not None:
            report(elapsed)
        done += 1
        if pause > 0:
            time.sleep(pause)
    return done


def _print_elapsed(seconds: float) -> None:
    print(f"{seconds * 1000:.3f}ms", flush=True)


def _parse(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gridphys-simulate",
        description="Run the grid physics engine on random entities and print tick times.",
    )
    parser.add_argument("--entities", type=int, default=_DEFAULTS.max_entities,
                        help="number of entities to create")
    parser.add_argument("--ticks", type=int, default=None,
                        help="number of ticks to run (default: run until interrupted)")
    parser.add_argument("--tick-time", type=float, default=_DEFAULTS.tick_time,
                        help="seconds to pause between ticks")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--body-type", choices=("circle", "square", "random"), default="circle",
                        help="shape of the created entities")
    args = parser.parse_args(argv)
    if args.entities < 0:
        parser.error("--entities must not be negative")
    if args.entities > _DEFAULTS.max_entities:
        parser.error(f"--entities must be at most {_DEFAULTS.max_entities}")
    if args.ticks is not None and args.ticks < 0:
        parser.error("--ticks must not be negative")
    if args.tick_time < 0:
        parser.error("--tick-time must not be negative")
    return args


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    args = _parse(sys.argv[1:] if argv is None else argv)
    kinds = {"circle": BodyType.CIRCLE, "square": BodyType.SQUARE, "random": None}
    room = Room()
    room.create_entities(random_entities(args.entities, random.Random(args.seed), kinds[args.body_type]))
    try:
        run(room, args.ticks, args.tick_time, _print_elapsed)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())