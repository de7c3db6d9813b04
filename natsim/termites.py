"""Termites that random-walk on a toroidal grid and pile up wood chips."""

from __future__ import annotations

import argparse
import random
from dataclasses import dataclass

from natsim.canvas import Canvas

# Offsets for headings N, NE, E, SE, S, SW, W, NW; turning is +/-1 heading.
DIRECTIONS = (
    (0, 1), (1, 1), (1, 0), (1, -1),
    (0, -1), (-1, -1), (-1, 0), (-1, 1),
)


@dataclass
class Termite:
    """One termite: position and heading (0..7, an index into DIRECTIONS)."""

    x: int
    y: int
    direction: int


class TermiteWorld:
    """A grid of wood chips and the termites that move them around.

    A termite standing on a chip carries it.  Stepping onto an empty cell
    while carrying moves the chip along; stepping towards another chip
    makes the termite turn round and walk away, leaving its chip behind.
    Each step the termite turns -45, 0 or +45 degrees at random.
    """

    def __init__(self, width=100, height=100, num=20, dense=0.3, seed=0):
        if width < 1 or height < 1:
            raise ValueError("world dimensions must be positive")
        if num < 0:
            raise ValueError("number of termites cannot be negative")
        self.width = width
        self.height = height
        self.time = 0
        self._rng = random.Random(seed)
        rng = self._rng
        self.termites = [
            Termite(int(rng.random() * width), int(rng.random() * height),
                    int(rng.random() * 8))
            for _ in range(num)
        ]
        self.chips = [
            [rng.random() < dense for _ in range(height)]
            for _ in range(width)
        ]

    def _advance(self, x: int, y: int, direction: int) -> tuple[int, int]:
        dx, dy = DIRECTIONS[direction]
        return (x + dx) % self.width, (y + dy) % self.height

    def step(self):
        """Move every termite once."""
        chips = self.chips
        for termite in self.termites:
            termite.direction = (termite.direction + self._rng.randrange(3) - 1) % 8
            nx, ny = self._advance(termite.x, termite.y, termite.direction)
            carrying = chips[termite.x][termite.y]
            if carrying and not chips[nx][ny]:
                chips[termite.x][termite.y] = False
                termite.x, termite.y = nx, ny
                chips[nx][ny] = True
            elif carrying:
                termite.direction = (termite.direction + 4) % 8
                termite.x, termite.y = self._advance(termite.x, termite.y,
                                                     termite.direction)
            else:
                termite.x, termite.y = nx, ny
        self.time += 1

    def run(self, steps):
        """Advance the world by the given number of steps."""
        for _ in range(steps):
            self.step()

    def chip_count(self) -> int:
        """Number of cells currently holding a chip."""
        return sum(sum(column) for column in self.chips)


def _draw(world: TermiteWorld, magnification: int, inverse: bool) -> Canvas:
    canvas = Canvas(world.width, world.height, 2, magnification, inverse)
    for x, column in enumerate(world.chips):
        for y, chip in enumerate(column):
            if chip:
                canvas.point(x, y, 1)
    return canvas


def main(argv=None):
    parser = argparse.ArgumentParser(prog="termites",
                                     description="Simulate a population of termites.")
    parser.add_argument("-width", type=int, default=100, help="Width of the plot in pixels.")
    parser.add_argument("-height", type=int, default=100, help="Height of the plot in pixels.")
    parser.add_argument("-num", type=int, default=20, help="Number of termites in population.")
    parser.add_argument("-dense", type=float, default=0.3, help="Density of chips at start.")
    parser.add_argument("-steps", type=int, default=10000000, help="Number of simulated steps.")
    parser.add_argument("-seed", type=int, default=0, help="Random seed for initial state.")
    parser.add_argument("-inv", action="store_true", help="Invert all colors?")
    parser.add_argument("-mag", type=int, default=2, help="Magnification factor.")
    parser.add_argument("-term", default="termites.pgm", help="Image file to write.")
    args = parser.parse_args(argv)

    try:
        world = TermiteWorld(args.width, args.height, args.num, args.dense, args.seed)
    except ValueError as exc:
        parser.error(str(exc))
    world.run(args.steps)
    _draw(world, args.mag, args.inv).save(args.term)
    return 0