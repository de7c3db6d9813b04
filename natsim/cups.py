"""A zeroth-level classifier system (ZCS) learning to collect two cups in a corridor."""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path

from natsim.canvas import Canvas
from natsim.zcs import (
    Classifier,
    ClassifierSystem,
    SpecError,
    parse_world,
)

# Cell contents; also the plot level each is drawn in.
EMPTY = 0
CUP = 1
WALL = 2
ME = 3
MECUP = 4

REWARD = 1000

COND_LEN = 4 + 1
ACT_LEN = 2 + 1

START_X = 4
START_Y = 0


class Cups:
    """A row world with walls and cups, an agent with collision sensors and a register.

    Actions are three bits: the first two choose 00 nothing, 01 right,
    10 left, 11 pick up; the third is stored in the register.  The agent
    always starts at column 4 of the top row, and a reward is only earned
    once both cups have been picked up.
    """

    def __init__(self, grid):
        if not grid or not grid[0]:
            raise SpecError("world is empty")
        width = len(grid[0])
        if any(len(row) != width for row in grid):
            raise SpecError("world rows differ in length")
        if width <= START_X:
            raise SpecError("world is too narrow for the starting position")
        self.width = width
        self.height = len(grid)
        self._original = [list(row) for row in grid]
        self.restart()

    def restart(self):
        """Restore the original world and put the agent back at its start."""
        self.grid = [list(row) for row in self._original]
        self.x, self.y = START_X, START_Y
        self.grid[self.y][self.x] = ME
        self.col_left = 0
        self.col_right = 0
        self.register = 0
        self.cups = 0

    def environment(self) -> str:
        """Cup to the left, cup to the right, left and right collisions, register."""
        row = self.grid[self.y]
        left = row[(self.x - 1) % self.width]
        right = row[(self.x + 1) % self.width]
        return "".join((
            "1" if left == CUP else "0",
            "1" if right == CUP else "0",
            str(self.col_left),
            str(self.col_right),
            str(self.register),
        ))

    def _blocked(self, x: int) -> bool:
        return not (0 <= x < self.width) or self.grid[self.y][x] == WALL

    def _step(self, dx: int) -> bool:
        target = self.x + dx
        if self._blocked(target):
            return False
        row = self.grid[self.y]
        if row[target] == CUP:
            row[target] = MECUP
            row[self.x] = EMPTY
        else:
            row[target] = ME
            row[self.x] = CUP if row[self.x] == MECUP else EMPTY
        self.x = target
        return True

    def move(self, action) -> int:
        """Carry out an action; return the reward earned (only once both cups are held)."""
        if len(action) != ACT_LEN or set(action) - {"0", "1"}:
            raise ValueError(f"action must be {ACT_LEN} bits")
        self.col_left = self.col_right = 0
        self.register = int(action[2])
        code = action[:2]
        if code == "01":
            if not self._step(1):
                self.col_right = 1
        elif code == "10":
            if not self._step(-1):
                self.col_left = 1
        elif code == "11":
            if self.grid[self.y][self.x] == MECUP:
                self.cups += 1
                self.grid[self.y][self.x] = ME
        return REWARD if self.cups == 2 else 0


def _trial(system: ClassifierSystem, world: Cups, rng: random.Random,
           grate: float, allow_ga: bool) -> int:
    reward = count = 0
    previous: list[Classifier] = []
    while reward == 0:
        env = world.environment()
        matches = system.cover_match(system.match(env), env)
        actions = system.action_set(matches)
        reward = world.move(actions[0].action)
        system.update(reward, matches, actions, previous)
        if rng.random() < grate and allow_ga:
            system.ga()
        previous = actions
        count += 1
    return count


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="zcscup",
        description="Train a zeroth level classifier system to solve the cups problem.")
    parser.add_argument("-specs", default="data/cup1.txt", help="World specification file.")
    parser.add_argument("-steps", type=int, default=100, help="Number of simulated trials.")
    parser.add_argument("-seed", type=int, default=1, help="Random seed for initial state.")
    parser.add_argument("-size", type=int, default=100, help="Population size.")
    parser.add_argument("-sinit", type=float, default=20.0, help="Initial classifier strength.")
    parser.add_argument("-lrate", type=float, default=0.2, help="BB learning rate.")
    parser.add_argument("-drate", type=float, default=0.71, help="BB discount rate.")
    parser.add_argument("-trate", type=float, default=0.1, help="Tax rate for strength reduce.")
    parser.add_argument("-crate", type=float, default=0.1, help="GA crossover rate.")
    parser.add_argument("-mrate", type=float, default=0.002, help="GA mutation rate.")
    parser.add_argument("-grate", type=float, default=0.25, help="GA invocation rate.")
    parser.add_argument("-cover", type=float, default=0.5, help="Covering factor.")
    parser.add_argument("-wild", type=float, default=0.33, help="Probability of # in cover.")
    parser.add_argument("-avelen", type=int, default=50, help="Length of windowed average.")
    parser.add_argument("-inv", dest="inverse", action="store_false",
                        help="Invert all colors?")
    parser.add_argument("-mag", type=int, default=10, help="Magnification factor.")
    parser.add_argument("-term", default="zcscup.pgm", help="Image file to write.")
    args = parser.parse_args(argv)
    if args.avelen < 1:
        parser.error("avelen must be positive")

    try:
        text = Path(args.specs).read_text()
    except OSError:
        sys.stderr.write(f'Cannot open specs file "{args.specs}".\n')
        return 1

    rng = random.Random(args.seed)
    try:
        world = Cups(parse_world(text))
        system = ClassifierSystem(args.size, COND_LEN, ACT_LEN, rng, args.sinit,
                                  args.lrate, args.drate, args.trate, args.crate,
                                  args.mrate, args.wild, args.cover, False)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    counts = [0] * args.avelen
    average = 0.0
    total = 0
    for t in range(args.steps):
        count = _trial(system, world, rng, args.grate, t > 0)
        slot = t % args.avelen
        if t >= args.avelen:
            average = (average * args.avelen - counts[slot] + count) / args.avelen
        counts[slot] = count
        total += count
        if t == args.avelen - 1:
            average = sum(counts) / args.avelen
        if t >= args.avelen:
            print(f"{count}\t{average:f}\t{total / (t + 1):f}")
        world.restart()

    try:
        Path("zcscup.log").write_text("".join(line + "\n" for line in system.log_lines()))
    except OSError:
        pass

    canvas = Canvas(world.width, world.height, 5, args.mag, args.inverse)
    for y, row in enumerate(world.grid):
        for x, cell in enumerate(row):
            canvas.point(x, y, cell)
    canvas.save(args.term)
    return 0