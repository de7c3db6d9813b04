"""Generalised virtual ants walking on a multi-state toroidal grid."""

from __future__ import annotations

import argparse
import random
from dataclasses import dataclass

from natsim.canvas import Canvas

# Offsets for headings 0..3: y+1, x+1, y-1, x-1.
_MOVES = ((0, 1), (1, 0), (0, -1), (-1, 0))


@dataclass
class Vant:
    """One ant: position and heading (0..3)."""

    x: int
    y: int
    direction: int


class VantWorld:
    """A grid of cell states walked over by a population of vants.

    The rule string has one bit per cell state; a vant on a cell in
    state S turns right if bit S is 1 and left otherwise, then the cell
    advances to state (S + 1) mod len(rule).
    """

    def __init__(self, width=200, height=200, rule="10", num=1, dense=0.0, seed=0):
        if width < 1 or height < 1:
            raise ValueError("world dimensions must be positive")
        if not rule or set(rule) - {"0", "1"}:
            raise ValueError("rule must be a non-empty string of 0s and 1s")
        if num < 0:
            raise ValueError("number of vants cannot be negative")
        self.width = width
        self.height = height
        self.rule = rule
        self.states = len(rule)
        self.time = 0
        rng = random.Random(seed)
        self.vants = [
            Vant(int(rng.random() * width), int(rng.random() * height),
                 int(rng.random() * 4))
            for _ in range(num)
        ]
        self.grid = [
            [
                (rng.randrange(self.states) if rng.random() < dense else 0)
                if dense > 0 else 0
                for _ in range(height)
            ]
            for _ in range(width)
        ]

    def step(self):
        """Move every vant once."""
        for vant in self.vants:
            dx, dy = _MOVES[vant.direction]
            x = (vant.x + dx) % self.width
            y = (vant.y + dy) % self.height
            old = self.grid[x][y]
            self.grid[x][y] = (old + 1) % self.states
            vant.x, vant.y = x, y
            turn = 5 if self.rule[old] == "1" else 3
            vant.direction = (vant.direction + turn) % 4
        self.time += 1

    def run(self, steps):
        """Advance the world by the given number of steps."""
        for _ in range(steps):
            self.step()


def _draw(world: VantWorld, magnification: int, inverse: bool) -> Canvas:
    canvas = Canvas(world.width, world.height, world.states, magnification, inverse)
    for x, column in enumerate(world.grid):
        for y, state in enumerate(column):
            canvas.point(x, y, state)
    return canvas


def main(argv=None):
    parser = argparse.ArgumentParser(prog="vants", description="Simulate virtual ants.")
    parser.add_argument("-width", type=int, default=200, help="Width of the plot in pixels.")
    parser.add_argument("-height", type=int, default=200, help="Height of the plot in pixels.")
    parser.add_argument("-num", type=int, default=1, help="Number of ants.")
    parser.add_argument("-rule", default="10", help="Rule string.")
    parser.add_argument("-dense", type=float, default=0.0, help="Density of random crud.")
    parser.add_argument("-steps", type=int, default=100000000, help="Number of simulated steps.")
    parser.add_argument("-seed", type=int, default=0, help="Random seed for initial state.")
    parser.add_argument("-inv", action="store_true", help="Invert all colors?")
    parser.add_argument("-mag", type=int, default=1, help="Magnification factor.")
    parser.add_argument("-term", default="vants.pgm", help="Image file to write.")
    args = parser.parse_args(argv)

    try:
        world = VantWorld(args.width, args.height, args.rule, args.num, args.dense, args.seed)
    except ValueError as exc:
        parser.error(str(exc))
    world.run(args.steps)
    _draw(world, args.mag, args.inv).save(args.term)
    return 0