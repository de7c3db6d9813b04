# natsim

Small simulations of natural and adaptive systems, each usable as a library
or from the command line. Pictures are drawn into an in-memory
`natsim.canvas.Canvas` and written to an image file when a run ends.

## Installation

    pip install .

For running the tests:

    pip install ".[test]"
    pytest

## Commands

| Command           | What it does                                                        |
|-------------------|---------------------------------------------------------------------|
| `natsim-spider`   | Renders the "spider" escape-time fractal, optionally with a box.   |
| `natsim-vants`    | Simulates generalised virtual ants driven by a rule string.        |
| `natsim-termites` | Termites that random-walk and gather wood chips into piles.        |
| `natsim-sipd`     | The spatial iterated Prisoner's Dilemma on a toroidal grid.        |
| `natsim-stutter`  | A minimal Lisp read-eval-print loop on standard input.             |
| `natsim-zcs`      | A zeroth-level classifier system learning to find food.            |
| `natsim-cups`     | A zeroth-level classifier system solving the cups problem.         |

Options are written with a single dash (`-width 50`, `-seed 3`, ...);
`--help` lists them for each command.

Every simulation command takes `-term FILE` and writes its final picture
there: a colour PPM image if the name ends in `.ppm`, otherwise a grayscale
PGM image. `natsim-sipd -term none` writes no image, and `natsim-sipd -stats`
prints per-strategy average scores and population fractions to standard
error after every step.

`natsim-zcs` and `natsim-cups` read a world file given with `-specs`, print
one line per trial once `-avelen` trials have passed (steps taken, windowed
average, overall average), and at the end write the classifiers, strongest
first, to `zcs.log` or `zcscup.log` in the current directory. Their images
are drawn inverted by default; `-inv` turns that off.

## Library use

```python
from natsim.vants import VantWorld

world = VantWorld(width=100, height=100, rule="10", num=1, dense=0.0, seed=0)
world.run(1000)
```

```python
from natsim.termites import TermiteWorld

world = TermiteWorld(width=50, height=50, num=20, dense=0.3, seed=0)
world.run(100)
print(world.chip_count())   # chips are moved, never created or lost
```

```python
from natsim.sipd import SpatialPD, Payoffs, format_stats

game = SpatialPD(width=30, height=30, payoffs=Payoffs(),
                 populations=None, rounds=5, rcp=0.5,
                 noise=0.0, mute=0.0, seed=1)
stats = game.step()
print(format_stats(1, stats))
```

```python
from natsim.spider import render

canvas = render(width=160, height=120)
canvas.save("spider.ppm")
```

```python
from natsim.stutter import Interpreter

lisp = Interpreter()
print(lisp.run("(car '(a b c))"))   # ['a']
```

`Interpreter.run` returns one output line per expression; errors come back
as their message rather than being raised. `Interpreter.parse` and
`Interpreter.evaluate` raise `LispError` instead.

## World files

The classifier-system simulations read a world description: the width and
height followed by one cell per character, row by row, where `.` is empty,
`O` is a rock or wall and `F` is food or a cup; `#` starts a comment that
runs to the end of the line. `natsim.zcs.parse_world` reads this format and
raises `SpecError` on a malformed file. In the cups world the agent always
starts at column 4 of the top row.

## What it does not do

- Nothing is shown on screen while a simulation runs; only the final picture
  is written, to a file.
- No world files are included; `-specs` must point at one you provide.
- The Lisp interpreter has no numbers, strings or other built-ins beyond
  `car`, `cdr`, `cons`, `set`, `equal`, `quote`, `lambda` and `if`, and the
  atoms `t` and `nil`.