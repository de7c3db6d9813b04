"""The spatial iterated Prisoner's Dilemma on a toroidal grid."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from enum import IntEnum

from natsim.canvas import Canvas


class Strategy(IntEnum):
    ALL_C = 0
    TIT_FOR_TAT = 1
    RANDOM = 2
    PAVLOV = 3
    ALL_D = 4


_LABELS = {
    Strategy.ALL_C: "All C       :",
    Strategy.TIT_FOR_TAT: "Tit for Tat :",
    Strategy.RANDOM: "Random      :",
    Strategy.PAVLOV: "Pavlov      :",
    Strategy.ALL_D: "All D       :",
}

# Order in which initial populations are accumulated for roulette selection.
_ROULETTE_ORDER = (Strategy.ALL_C, Strategy.ALL_D, Strategy.TIT_FOR_TAT,
                   Strategy.RANDOM, Strategy.PAVLOV)

# W, NW, N and NE neighbours; the other four are covered when they play us.
_HALF_NEIGHBOURS = ((-1, 0), (-1, 1), (0, 1), (1, 1))

# Bit index for each neighbour offset, so that a cell remembers one move per neighbour.
_OFFSET_BITS = ((5, 3, 0), (6, -1, 1), (7, 4, 2))


def _bit(k: int, l: int) -> int:
    return _OFFSET_BITS[k + 1][l + 1]


def _set_bit(byte: int, bit: int, value: int) -> int:
    return (byte | (1 << bit)) if value else (byte & ~(1 << bit))


@dataclass(frozen=True)
class Payoffs:
    """Reward (cc), sucker (cd), temptation (dc) and punish (dd) payoffs."""

    cc: float = 3.0
    cd: float = 0.0
    dc: float = 5.0
    dd: float = 1.0

    def pay(self, mine, theirs) -> float:
        """Score for playing `mine` against `theirs` (0 cooperate, 1 defect)."""
        if mine:
            return self.dd if theirs else self.dc
        return self.cd if theirs else self.cc


@dataclass
class StrategyStats:
    """Average score per game and population fraction of one strategy."""

    strategy: Strategy
    average_score: float
    population: float


def decide(strategy, last_him, last_me, rcp=0.5, rng=None) -> int:
    """The move (0 cooperate, 1 defect) a strategy makes given the last round."""
    strategy = Strategy(strategy)
    if strategy is Strategy.ALL_C:
        return 0
    if strategy is Strategy.TIT_FOR_TAT:
        return int(last_him)
    if strategy is Strategy.RANDOM:
        rng = rng if rng is not None else random
        return 0 if rng.random() < rcp else 1
    if strategy is Strategy.PAVLOV:
        return int(not last_me) if last_him else int(last_me)
    return 1


class SpatialPD:
    """A grid of players, each playing its eight neighbours every round.

    After the rounds of a step, every cell adopts the strategy of the most
    successful cell in its 3x3 neighbourhood, or mutates at random.
    """

    def __init__(self, width=100, height=100, payoffs=None, populations=None,
                 rounds=5, rcp=0.5, noise=0.0, mute=0.0, seed=0):
        if width < 1 or height < 1:
            raise ValueError("world dimensions must be positive")
        if rounds < 1:
            raise ValueError("rounds must be positive")
        self.width = width
        self.height = height
        self.payoffs = payoffs if payoffs is not None else Payoffs()
        self.rounds = rounds
        self.rcp = rcp
        self.noise = noise
        self.mute = mute
        self.time = 0
        self._rng = random.Random(seed)

        weights = {s: 0.2 for s in Strategy}
        if populations is not None:
            weights = {s: float(populations.get(s, 0.0)) for s in Strategy}
        if any(w < 0 for w in weights.values()):
            raise ValueError("initial populations cannot be negative")
        total = sum(weights.values())
        if total <= 0:
            raise ValueError("initial populations must not all be zero")

        thresholds = []
        running = 0.0
        for strategy in _ROULETTE_ORDER:
            running += weights[strategy] / total
            thresholds.append((running, strategy))

        def pick() -> Strategy:
            x = self._rng.random()
            for limit, strategy in thresholds[:-1]:
                if x < limit:
                    return strategy
            return thresholds[-1][1]

        self.strategies = [[pick() for _ in range(height)] for _ in range(width)]
        self.scores = [[0.0] * height for _ in range(width)]

    def _move(self, strategy, last_him, last_me) -> int:
        if self.noise > 0 and self._rng.random() < self.noise:
            return self._rng.randrange(2)
        return decide(strategy, last_him, last_me, self.rcp, self._rng)

    def _play_cell(self, i, j, act, last):
        strat, scores = self.strategies, self.scores
        for k, l in _HALF_NEIGHBOURS:
            ii = (i + k) % self.width
            jj = (j + l) % self.height
            mine_bit, theirs_bit = _bit(k, l), _bit(-k, -l)
            prev1 = (last[i][j] >> mine_bit) & 1
            prev2 = (last[ii][jj] >> theirs_bit) & 1
            act1 = self._move(strat[i][j], prev2, prev1)
            act2 = self._move(strat[ii][jj], prev1, prev2)
            scores[i][j] += self.payoffs.pay(act1, act2)
            scores[ii][jj] += self.payoffs.pay(act2, act1)
            act[i][j] = _set_bit(act[i][j], mine_bit, act1)
            act[ii][jj] = _set_bit(act[ii][jj], theirs_bit, act2)

    def best_strategy(self, i, j) -> Strategy:
        """The strategy of the best scorer in the 3x3 block around (i, j).

        Ties go to a later cell only if it shares the centre's strategy.
        """
        best = -1.0
        best_cell = (0, 0)
        own = self.strategies[i][j]
        for k in (-1, 0, 1):
            for l in (-1, 0, 1):
                ii = (i + k) % self.width
                jj = (j + l) % self.height
                score = self.scores[ii][jj]
                if score > best or (score == best and self.strategies[ii][jj] == own):
                    best = score
                    best_cell = (ii, jj)
        return Strategy(self.strategies[best_cell[0]][best_cell[1]])

    def step(self) -> list[StrategyStats]:
        """Play all rounds, update strategies, and return per-strategy statistics."""
        w, h = self.width, self.height
        act = [[0] * h for _ in range(w)]
        last = [[0] * h for _ in range(w)]
        self.scores = [[0.0] * h for _ in range(w)]

        for _ in range(self.rounds):
            for i in range(w):
                for j in range(h):
                    self._play_cell(i, j, act, last)
            act, last = last, act

        counts = {s: 0 for s in Strategy}
        fitness = {s: 0.0 for s in Strategy}
        new = [[Strategy.ALL_C] * h for _ in range(w)]
        for j in range(h):
            for i in range(w):
                if self.mute == 0 or self._rng.random() > self.mute:
                    new[i][j] = self.best_strategy(i, j)
                else:
                    new[i][j] = Strategy(self._rng.randrange(len(Strategy)))
                current = Strategy(self.strategies[i][j])
                counts[current] += 1
                fitness[current] += self.scores[i][j]

        stats = []
        for strategy in Strategy:
            average = fitness[strategy]
            if average > 0.0:
                average /= counts[strategy] * self.rounds * 8
            stats.append(StrategyStats(strategy, average, counts[strategy] / (w * h)))

        self.strategies = new
        self.time += 1
        return stats


def format_stats(t, stats) -> str:
    """Render the statistics of time step `t` (counted from 1) as a table."""
    rule = "-" * 46 + "\n"
    lines = [rule, f"time {t:08d} :\taverage score\tpopulation\n", rule]
    for entry in stats:
        lines.append(f"  {_LABELS[Strategy(entry.strategy)]} "
                     f"{entry.average_score:.6f}\t{entry.population:.6f}\n")
    return "".join(lines)


def _draw(sim: SpatialPD, magnification: int, inverse: bool) -> Canvas:
    canvas = Canvas(sim.width, sim.height, len(Strategy), magnification, inverse)
    for i, column in enumerate(sim.strategies):
        for j, strategy in enumerate(column):
            canvas.point(i, j, int(strategy))
    return canvas


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="sipd", description="Simulate the spatial iterated Prisoner's Dilemma.")
    parser.add_argument("-width", type=int, default=100, help="Width of world.")
    parser.add_argument("-height", type=int, default=100, help="Height of world.")
    parser.add_argument("-steps", type=int, default=10000000, help="Number of steps to simulate.")
    parser.add_argument("-rounds", type=int, default=5, help="Number of rounds per step.")
    parser.add_argument("-seed", type=int, default=0, help="Random seed for initial state.")
    parser.add_argument("-CC", type=float, default=3.0, help="Reward Payoff.")
    parser.add_argument("-CD", type=float, default=0.0, help="Sucker Payoff.")
    parser.add_argument("-DC", type=float, default=5.0, help="Temptation Payoff.")
    parser.add_argument("-DD", type=float, default=1.0, help="Punish Payoff.")
    parser.add_argument("-Iallc", type=float, default=0.2, help="Initial population of All-C.")
    parser.add_argument("-Itft", type=float, default=0.2, help="Initial population of TFT.")
    parser.add_argument("-Irand", type=float, default=0.2, help="Initial population of Random.")
    parser.add_argument("-Ipav", type=float, default=0.2, help="Initial population of Pavlov.")
    parser.add_argument("-Ialld", type=float, default=0.2, help="Initial population of All-D.")
    parser.add_argument("-rcp", type=float, default=0.5,
                        help="Probability of C for Random strategy.")
    parser.add_argument("-noise", type=float, default=0.0, help="Probability of noise.")
    parser.add_argument("-mute", type=float, default=0.0, help="Probability of mutation.")
    parser.add_argument("-stats", action="store_true", help="Print statistics?")
    parser.add_argument("-inv", action="store_true", help="Invert all colors?")
    parser.add_argument("-mag", type=int, default=1, help="Magnification factor.")
    parser.add_argument("-term", default="sipd.pgm",
                        help="Image file to write, or 'none' for no image.")
    args = parser.parse_args(argv)

    populations = {
        Strategy.ALL_C: args.Iallc,
        Strategy.TIT_FOR_TAT: args.Itft,
        Strategy.RANDOM: args.Irand,
        Strategy.PAVLOV: args.Ipav,
        Strategy.ALL_D: args.Ialld,
    }
    try:
        sim = SpatialPD(args.width, args.height,
                        Payoffs(args.CC, args.CD, args.DC, args.DD), populations,
                        args.rounds, args.rcp, args.noise, args.mute, args.seed)
    except ValueError as exc:
        parser.error(str(exc))

    for t in range(args.steps):
        stats = sim.step()
        if args.stats:
            sys.stderr.write(format_stats(t + 1, stats))

    if args.term != "none":
        _draw(sim, args.mag, args.inv).save(args.term)
    return 0