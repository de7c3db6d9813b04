"""A zeroth-level classifier system (ZCS) learning to find food in a woods world."""

from __future__ import annotations

import argparse
import random
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from natsim.canvas import Canvas

# Cell contents; also the plot level each is drawn in.
EMPTY = 0
FOOD = 1
ROCK = 2
ME = 3

FOOD_REWARD = 1000

COND_LEN = 16
ACT_LEN = 3

# Offsets clockwise from north; (0, -1) is north as row 0 is the top row.
ORDER = ((0, -1), (1, -1), (1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1))

_SPEC_LEXEME = re.compile(r"[FO.]|[^FO.\s]+")


class SpecError(ValueError):
    """The world specification is missing something or malformed."""


@dataclass
class Classifier:
    """A condition over {0, 1, #}, an action bit string, and a strength."""

    strength: float
    condition: str
    action: str


def condition_matches(cond, env) -> bool:
    """True if every non-wildcard character of the condition equals the environment's."""
    return all(c == "#" or c == e for c, e in zip(cond, env))


def _cell(item: str) -> int:
    if item[0] == "F":
        return FOOD
    if item[0] == "O":
        return ROCK
    return EMPTY


def parse_world(text) -> list[list[int]]:
    """Parse a world: width, height, then one of 'F', 'O', '.' per cell, row by row.

    '#' starts a comment that runs to the end of the line.
    """
    items = [
        item
        for line in text.splitlines()
        for item in _SPEC_LEXEME.findall(line.split("#", 1)[0])
    ]
    if len(items) < 2:
        raise SpecError("Problem found in specs file.")
    try:
        width, height = int(items[0]), int(items[1])
    except ValueError as exc:
        raise SpecError("Problem found in specs file.") from exc
    if width < 1 or height < 1:
        raise SpecError("Problem found in specs file.")
    cells = items[2:]
    if len(cells) < width * height:
        raise SpecError("Problem found in specs file.")
    return [
        [_cell(cells[row * width + col]) for col in range(width)]
        for row in range(height)
    ]


def _random_condition_char(rng: random.Random) -> str:
    return "01#"[rng.randrange(3)]


def _random_action(rng: random.Random, length: int) -> str:
    return "".join("01"[rng.randrange(2)] for _ in range(length))


class ClassifierSystem:
    """A population of classifiers trained by the implicit bucket brigade and a GA."""

    def __init__(self, size=400, cond_len=COND_LEN, act_len=ACT_LEN, rng=None,
                 sinit=20.0, lrate=0.2, drate=0.71, trate=0.1, crate=0.5,
                 mrate=0.002, wild=0.33, cover=0.5, split_crossover=True):
        if size < 2:
            raise ValueError("population size must be at least 2")
        if cond_len < 1 or act_len < 1:
            raise ValueError("condition and action lengths must be positive")
        self.size = size
        self.cond_len = cond_len
        self.act_len = act_len
        self.rng = rng if rng is not None else random.Random()
        self.lrate = lrate
        self.drate = drate
        self.trate = trate
        self.crate = crate
        self.mrate = mrate
        self.wild = wild
        self.cover = cover
        self.split_crossover = split_crossover
        self.population: list[Classifier] = []
        for _ in range(size):
            cond = "".join(_random_condition_char(self.rng) for _ in range(cond_len))
            act = _random_action(self.rng, act_len)
            self.population.append(Classifier(float(sinit), cond, act))

    def match(self, env) -> list[Classifier]:
        """Classifiers whose condition matches env, most recently indexed first."""
        return [c for c in reversed(self.population) if condition_matches(c.condition, env)]

    def _mean_strength(self) -> float:
        return sum(c.strength for c in self.population) / self.size

    def cover_match(self, matches, env) -> list[Classifier]:
        """Return matches, or, if they are too weak, matches plus a new covering classifier."""
        total = sum(c.strength for c in matches)
        mean = self._mean_strength()
        if total > mean * self.cover:
            return list(matches)
        replaced = self.population[self.pick_small(None)]
        replaced.condition = "".join(
            "#" if self.rng.random() < self.wild else ch for ch in env
        )
        replaced.action = _random_action(self.rng, self.act_len)
        replaced.strength = mean
        return [replaced] + list(matches)

    def action_set(self, matches) -> list[Classifier]:
        """Pick an action by strength roulette; return the matches advocating it."""
        if not matches:
            raise ValueError("cannot choose an action from an empty match set")
        total = sum(c.strength for c in matches)
        x = self.rng.random()
        running = 0.0
        pick = matches[0]
        for candidate in matches:
            running += candidate.strength / total
            if x <= running:
                pick = candidate
                break
        return [c for c in reversed(matches) if c.action == pick.action]

    def update(self, reward, matches, actions, previous):
        """One step of the implicit bucket brigade."""
        if not actions:
            raise ValueError("action set is empty")
        hold = 0.0
        for c in actions:
            hold += self.lrate * c.strength
            c.strength -= self.lrate * c.strength
        for c in actions:
            c.strength += self.lrate * reward / len(actions)
        if previous:
            for c in previous:
                c.strength += self.drate * hold / len(previous)
        chosen = actions[0].action
        for c in matches:
            if c.action != chosen:
                c.strength -= self.trate * c.strength

    def _roulette(self, weights, skip) -> int:
        total = sum(w for i, w in enumerate(weights) if i != skip)
        x = self.rng.random()
        running = 0.0
        for i, w in enumerate(weights):
            if i == skip:
                continue
            running += w / total
            if x <= running:
                return i
        return self.size - 1

    def pick_large(self, skip=None) -> int:
        """Index chosen by roulette on strength, never `skip` (barring rounding)."""
        return self._roulette([c.strength for c in self.population], skip)

    def pick_small(self, skip=None) -> int:
        """Index chosen by roulette on inverse strength, never `skip` (barring rounding)."""
        return self._roulette([1 / c.strength for c in self.population], skip)

    def ga(self):
        """Breed two strong parents into the slots of two weak classifiers."""
        pop = self.population
        pa = self.pick_large(None)
        pb = self.pick_large(pa)
        oa = self.pick_small(None)
        ob = self.pick_small(oa)

        pop[pa].strength /= 2
        a = pop[oa]
        a.strength, a.condition, a.action = pop[pa].strength, pop[pa].condition, pop[pa].action
        pop[pb].strength /= 2
        b = pop[ob]
        b.strength, b.condition, b.action = pop[pb].strength, pop[pb].condition, pop[pb].action

        rng = self.rng
        if rng.random() < self.crate:
            if self.split_crossover:
                if rng.randrange(self.cond_len + self.act_len) < self.cond_len:
                    self._cross_conditions(a, b, rng.randrange(self.cond_len) + 1)
                else:
                    self._cross_actions(a, b, rng.randrange(self.act_len) + 1)
            else:
                self._cross_conditions(a, b, rng.randrange(self.cond_len) + 1)
                self._cross_actions(a, b, rng.randrange(self.act_len) + 1)
            a.strength = b.strength = (a.strength + b.strength) / 2

        cond_a, cond_b = list(a.condition), list(b.condition)
        for i in range(self.cond_len):
            if rng.random() < self.mrate:
                cond_a[i] = _random_condition_char(rng)
            if rng.random() < self.mrate:
                cond_b[i] = _random_condition_char(rng)
        act_a, act_b = list(a.action), list(b.action)
        for i in range(self.act_len):
            if rng.random() < self.mrate:
                act_a[i] = "01"[rng.randrange(2)]
            if rng.random() < self.mrate:
                act_b[i] = "01"[rng.randrange(2)]
        a.condition, b.condition = "".join(cond_a), "".join(cond_b)
        a.action, b.action = "".join(act_a), "".join(act_b)

    @staticmethod
    def _cross_conditions(a: Classifier, b: Classifier, cut: int):
        a.condition, b.condition = (b.condition[:cut] + a.condition[cut:],
                                    a.condition[:cut] + b.condition[cut:])

    @staticmethod
    def _cross_actions(a: Classifier, b: Classifier, cut: int):
        a.action, b.action = (b.action[:cut] + a.action[cut:],
                              a.action[:cut] + b.action[cut:])

    def log_lines(self) -> list[str]:
        """One line per classifier, strongest first: 'condition : action : strength'."""
        ranked = sorted(self.population, key=lambda c: c.strength, reverse=True)
        return [f"{c.condition} : {c.action} : {c.strength:.5f}" for c in ranked]


class Woods:
    """A toroidal world of empty cells, rocks and food with one roaming agent."""

    def __init__(self, grid, rng=None):
        if not grid or not grid[0]:
            raise SpecError("world is empty")
        width = len(grid[0])
        if any(len(row) != width for row in grid):
            raise SpecError("world rows differ in length")
        self.grid = [list(row) for row in grid]
        self.width = width
        self.height = len(grid)
        self.rng = rng if rng is not None else random.Random()
        self.x, self.y = self._random_empty()
        self.grid[self.y][self.x] = ME

    def _random_empty(self) -> tuple[int, int]:
        if not any(EMPTY in row for row in self.grid):
            raise SpecError("world has no empty cell to start from")
        while True:
            y = self.rng.randrange(self.height)
            x = self.rng.randrange(self.width)
            if self.grid[y][x] == EMPTY:
                return x, y

    def environment(self) -> str:
        """Two bits per neighbour, clockwise from north: 00 empty, 10 rock, 11 food."""
        bits = []
        for dx, dy in ORDER:
            cell = self.grid[(self.y + dy) % self.height][(self.x + dx) % self.width]
            bits.append("0" if cell == EMPTY else "1")
            bits.append("1" if cell == FOOD else "0")
        return "".join(bits)

    def move(self, action) -> int:
        """Step in the direction the action's bits encode; return the reward earned."""
        index = int(action, 2)
        dx, dy = ORDER[index]
        nx = (self.x + dx) % self.width
        ny = (self.y + dy) % self.height
        reward = 0
        if self.grid[ny][nx] != ROCK:
            if self.grid[ny][nx] == FOOD:
                reward = FOOD_REWARD
            self.grid[self.y][self.x] = EMPTY
            self.x, self.y = nx, ny
            self.grid[ny][nx] = ME
        return reward

    def restart(self):
        """Put food back where the agent stands and start it on a random empty cell."""
        self.grid[self.y][self.x] = FOOD
        self.x, self.y = self._random_empty()
        self.grid[self.y][self.x] = ME


def _trial(system: ClassifierSystem, woods: Woods, rng: random.Random, grate: float) -> int:
    reward = count = 0
    previous: list[Classifier] = []
    while reward == 0:
        env = woods.environment()
        matches = system.cover_match(system.match(env), env)
        actions = system.action_set(matches)
        reward = woods.move(actions[0].action)
        system.update(reward, matches, actions, previous)
        if rng.random() < grate:
            system.ga()
        previous = actions
        count += 1
    return count


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="zcs", description="Train a zeroth level classifier system to find food.")
    parser.add_argument("-specs", default="data/woods1.txt", help="World specification file.")
    parser.add_argument("-steps", type=int, default=5000, help="Number of simulated trials.")
    parser.add_argument("-seed", type=int, default=0, help="Random seed for initial state.")
    parser.add_argument("-size", type=int, default=400, help="Population size.")
    parser.add_argument("-sinit", type=float, default=20.0, help="Initial classifier strength.")
    parser.add_argument("-lrate", type=float, default=0.2, help="BB learning rate.")
    parser.add_argument("-drate", type=float, default=0.71, help="BB discount rate.")
    parser.add_argument("-trate", type=float, default=0.1, help="Tax rate for strength reduce.")
    parser.add_argument("-crate", type=float, default=0.5, help="GA crossover rate.")
    parser.add_argument("-mrate", type=float, default=0.002, help="GA mutation rate.")
    parser.add_argument("-grate", type=float, default=0.25, help="GA invocation rate.")
    parser.add_argument("-cover", type=float, default=0.5, help="Covering factor.")
    parser.add_argument("-wild", type=float, default=0.33, help="Probability of # in cover.")
    parser.add_argument("-avelen", type=int, default=50, help="Length of windowed average.")
    parser.add_argument("-inv", dest="inverse", action="store_false",
                        help="Invert all colors?")
    parser.add_argument("-mag", type=int, default=10, help="Magnification factor.")
    parser.add_argument("-term", default="zcs.pgm", help="Image file to write.")
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
        woods = Woods(parse_world(text), rng)
        system = ClassifierSystem(args.size, COND_LEN, ACT_LEN, rng, args.sinit,
                                  args.lrate, args.drate, args.trate, args.crate,
                                  args.mrate, args.wild, args.cover, True)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    counts = [0] * args.avelen
    average = 0.0
    total = 0
    for t in range(args.steps):
        count = _trial(system, woods, rng, args.grate)
        slot = t % args.avelen
        if t >= args.avelen:
            average = (average * args.avelen - counts[slot] + count) / args.avelen
        counts[slot] = count
        total += count
        if t == args.avelen - 1:
            average = sum(counts) / args.avelen
        if t >= args.avelen:
            print(f"{count}\t{average:f}\t{total / (t + 1):f}")
        woods.restart()

    try:
        Path("zcs.log").write_text("".join(line + "\n" for line in system.log_lines()))
    except OSError:
        pass

    canvas = Canvas(woods.width, woods.height, 4, args.mag, args.inverse)
    for y, row in enumerate(woods.grid):
        for x, cell in enumerate(row):
            canvas.point(x, y, cell)
    canvas.save(args.term)
    return 0