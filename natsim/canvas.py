"""An in-memory raster that simulations draw on, with PGM/PPM output."""

from __future__ import annotations

import math
from pathlib import Path

PALETTE_SIZE = 256
GRAY_LEVELS = 128


def _hue_channel(x: float) -> int:
    x -= math.floor(x)
    if x < 1.0 / 6:
        v = 6 * x
    elif x < 0.5:
        v = 1.0
    elif x < 4.0 / 6:
        v = 4 - 6 * x
    else:
        v = 0.0
    return int(255 * v + 0.5)


def hue_to_rgb(hue: float) -> tuple[int, int, int]:
    """Map a hue in [0, 1] to an (R, G, B) triple of 0..255 components."""
    return (
        _hue_channel(hue + 2.0 / 6),
        _hue_channel(hue),
        _hue_channel(hue - 2.0 / 6),
    )


def color_palette(size: int = PALETTE_SIZE) -> list[tuple[int, int, int]]:
    """A palette whose first entry is black and the rest sweep the hues."""
    if size < 1:
        raise ValueError("palette size must be positive")
    if size == 1:
        return [(0, 0, 0)]
    return [(0, 0, 0)] + [hue_to_rgb(i / (size - 1.0)) for i in range(1, size)]


def gray_palette(size: int = GRAY_LEVELS) -> list[tuple[int, int, int]]:
    """A palette of evenly spaced grays from black upwards."""
    if size < 1:
        raise ValueError("palette size must be positive")
    return [(g, g, g) for g in (i * 256 // size for i in range(size))]


class Canvas:
    """A width x height grid of plot levels, drawn magnified when saved."""

    def __init__(self, width, height, levels=2, magnification=1, inverse=False):
        if width < 1 or height < 1:
            raise ValueError("canvas dimensions must be positive")
        if levels < 1:
            raise ValueError("levels must be positive")
        if magnification < 1:
            raise ValueError("magnification must be positive")
        self.width = width
        self.height = height
        self.levels = levels
        self.magnification = magnification
        self.inverse = inverse
        self._pixels = [[0] * width for _ in range(height)]

    def _clamp(self, value) -> int:
        return min(max(int(value), 0), self.levels - 1)

    def point(self, x, y, value):
        """Set one cell; values are clamped, points off the canvas ignored."""
        x, y = int(x), int(y)
        if 0 <= x < self.width and 0 <= y < self.height:
            self._pixels[y][x] = self._clamp(value)

    def line(self, x1, y1, x2, y2, value):
        """Draw a straight line between two cells, endpoints included."""
        x1, y1, x2, y2 = int(x1), int(y1), int(x2), int(y2)
        if x1 == x2 and y1 == y2:
            self.point(x1, y1, value)
            return
        length = max(abs(x1 - x2), abs(y1 - y2))
        for step in range(length + 1):
            t = step / length
            self.point(
                int(t * x1 + (1.0 - t) * x2 + 0.5),
                int(t * y1 + (1.0 - t) * y2 + 0.5),
                value,
            )

    def box(self, x1, y1, x2, y2, thickness=1):
        """Outline a rectangle in the top level, growing inwards."""
        x1, y1, x2, y2 = int(x1), int(y1), int(x2), int(y2)
        top = self.levels - 1
        for k in range(max(int(thickness), 0)):
            left, right = x1 + k, x2 - k
            upper, lower = y1 + k, y2 - k
            self.line(left, upper, right, upper, top)
            self.line(left, lower, right, lower, top)
            self.line(left, upper, left, lower, top)
            self.line(right, upper, right, lower, top)

    def fill(self, value):
        """Set every cell to the same value."""
        value = self._clamp(value)
        for row in self._pixels:
            row[:] = [value] * self.width

    def get(self, x, y) -> int:
        """Return the level stored at a cell."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"point ({x}, {y}) is outside the canvas")
        return self._pixels[y][x]

    def _rgb(self, value: int, colour: bool) -> tuple[int, int, int]:
        fraction = value / (self.levels - 1) if self.levels > 1 else 0.0
        index = int(fraction * (PALETTE_SIZE - 1) + 0.5)
        if self.levels == 2:
            rgb = (0, 0, 0) if index < PALETTE_SIZE // 2 else (255, 255, 255)
        elif colour:
            rgb = color_palette(PALETTE_SIZE)[index]
        else:
            rgb = gray_palette(PALETTE_SIZE)[index]
        if self.inverse:
            rgb = tuple(255 - c for c in rgb)
        return rgb

    def save(self, path):
        """Write the canvas as PPM (for a .ppm path) or PGM (otherwise)."""
        path = Path(path)
        colour = path.suffix.lower() == ".ppm"
        lookup = {v: self._rgb(v, colour) for v in range(self.levels)}
        mag = self.magnification
        body = bytearray()
        for row in self._pixels:
            line = bytearray()
            for value in row:
                rgb = lookup[value]
                pixel = bytes(rgb) if colour else bytes((rgb[0],))
                line += pixel * mag
            body += bytes(line) * mag
        magic = "P6" if colour else "P5"
        header = f"{magic}\n{self.width * mag} {self.height * mag}\n255\n"
        path.write_bytes(header.encode("ascii") + bytes(body))