"""Escape-time rendering of the 'spider' fractal."""

from __future__ import annotations

import argparse

from natsim.canvas import Canvas


def escape_time(a, b, maxit=160, bail=16.0):
    """Iterations before |z|^2 exceeds bail, or None if it never does.

    z(0) = c(0) = a + bi; z(n+1) = z(n)^2 + c(n); c(n+1) = c(n)/2 + z(n+1).
    """
    x, y = a, b
    ca, cb = a, b
    for k in range(1, maxit + 1):
        u = x * x
        v = y * y
        w = 2.0 * x * y
        x = u - v + ca
        y = w + cb
        ca = 0.5 * ca + x
        cb = 0.5 * cb + y
        if u + v > bail:
            return k
    return None


def level_for(k, levels=16, idiv=1, rev=False):
    """Map an escape count to a plot level."""
    if idiv < 1:
        raise ValueError("idiv must be at least 1")
    level = (k // idiv + (k % idiv) * (levels // idiv)) % levels
    return levels - 1 - level if rev else level


def render(width=640, height=480, maxit=160, levels=16, bail=16.0,
           ulx=-2.4, uly=1.4, lly=-1.4, idiv=1, rev=False):
    """Render the fractal onto a new canvas."""
    if height < 2:
        raise ValueError("height must be at least 2")
    canvas = Canvas(width, height, levels)
    inc = (uly - lly) / (height - 1)
    for j in range(height):
        b = uly - j * inc
        for i in range(width):
            k = escape_time(ulx + i * inc, b, maxit, bail)
            if k is not None:
                canvas.point(i, j, level_for(k, levels, idiv, rev))
    return canvas


def main(argv=None):
    parser = argparse.ArgumentParser(prog="spider", description="Plot the spider fractal.")
    parser.add_argument("-width", type=int, default=640, help="width of the plot in pixels")
    parser.add_argument("-height", type=int, default=480, help="height of the plot in pixels")
    parser.add_argument("-maxit", type=int, default=160, help="maximum number of iterations")
    parser.add_argument("-levels", type=int, default=16, help="number of plot (gray) levels")
    parser.add_argument("-bail", type=float, default=16.0, help="value of |z| to end iteration")
    parser.add_argument("-ulx", type=float, default=-2.4, help="upper-left corner x-coordinate")
    parser.add_argument("-uly", type=float, default=1.4, help="upper-left corner y-coordinate")
    parser.add_argument("-lly", type=float, default=-1.4, help="lower-left corner y-coordinate")
    parser.add_argument("-box", type=int, default=0, help="line width for a box")
    parser.add_argument("-bulx", type=float, default=0.0, help="box's upper-left x-coordinate")
    parser.add_argument("-buly", type=float, default=0.0, help="box's upper-left y-coordinate")
    parser.add_argument("-blly", type=float, default=0.0, help="box's lower-left y-coordinate")
    parser.add_argument("-idiv", type=int, default=1, help="iteration divisor")
    parser.add_argument("-rev", action="store_true", help="reverse all colors but first")
    parser.add_argument("-term", default="spider.pgm", help="image file to write")
    args = parser.parse_args(argv)

    try:
        canvas = render(args.width, args.height, args.maxit, args.levels, args.bail,
                        args.ulx, args.uly, args.lly, args.idiv, args.rev)
    except ValueError as exc:
        parser.error(str(exc))

    if args.box > 0:
        inc = (args.uly - args.lly) / (args.height - 1)
        binc = (args.buly - args.blly) / (args.height - 1)
        canvas.box((args.bulx - args.ulx) / inc,
                   (args.uly - args.buly) / inc,
                   (args.bulx + args.width * binc - args.ulx) / inc,
                   (args.uly + args.height * binc - args.buly) / inc,
                   args.box)
    canvas.save(args.term)
    return 0