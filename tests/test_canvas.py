import pytest

from natsim.canvas import Canvas, color_palette, gray_palette, hue_to_rgb


def test_point_clamps_values():
    canvas = Canvas(4, 3, levels=4)
    canvas.point(1, 2, 10)
    canvas.point(0, 0, -5)
    assert canvas.get(1, 2) == 3
    assert canvas.get(0, 0) == 0


def test_point_outside_is_ignored_and_get_raises():
    canvas = Canvas(3, 3, levels=2)
    canvas.point(5, 5, 1)
    assert all(canvas.get(x, y) == 0 for x in range(3) for y in range(3))
    with pytest.raises(IndexError):
        canvas.get(3, 0)


def test_line_covers_endpoints_and_diagonal():
    canvas = Canvas(5, 5, levels=2)
    canvas.line(0, 0, 4, 4, 1)
    assert [canvas.get(i, i) for i in range(5)] == [1] * 5
    assert canvas.get(0, 4) == 0


def test_single_point_line():
    canvas = Canvas(3, 3, levels=3)
    canvas.line(1, 1, 1, 1, 2)
    assert canvas.get(1, 1) == 2


def test_fill_sets_every_cell():
    canvas = Canvas(3, 2, levels=5)
    canvas.fill(3)
    assert {canvas.get(x, y) for x in range(3) for y in range(2)} == {3}


def test_box_outline_leaves_interior():
    canvas = Canvas(6, 6, levels=3)
    canvas.box(0, 0, 5, 5, 1)
    assert canvas.get(0, 3) == 2
    assert canvas.get(5, 5) == 2
    assert canvas.get(2, 2) == 0


def test_save_pgm_size_with_magnification(tmp_path):
    canvas = Canvas(3, 2, levels=2, magnification=2)
    canvas.point(0, 0, 1)
    path = tmp_path / "out.pgm"
    canvas.save(path)
    data = path.read_bytes()
    header = b"P5\n6 4\n255\n"
    assert data.startswith(header)
    body = data[len(header):]
    assert len(body) == 24
    assert body[0] == 255 and body[1] == 255 and body[6] == 255
    assert body[2] == 0


def test_save_inverse_flips(tmp_path):
    canvas = Canvas(1, 1, levels=2, inverse=True)
    path = tmp_path / "inv.pgm"
    canvas.save(path)
    assert path.read_bytes()[-1] == 255


def test_save_ppm_has_three_channels(tmp_path):
    canvas = Canvas(2, 2, levels=8)
    canvas.point(1, 1, 7)
    path = tmp_path / "out.ppm"
    canvas.save(path)
    data = path.read_bytes()
    header = b"P6\n2 2\n255\n"
    assert data.startswith(header)
    assert len(data) - len(header) == 12
    assert data[len(header):len(header) + 3] == b"\x00\x00\x00"


def test_palettes():
    colours = color_palette(256)
    assert len(colours) == 256
    assert colours[0] == (0, 0, 0)
    assert all(0 <= c <= 255 for rgb in colours for c in rgb)
    grays = gray_palette(128)
    assert grays[1] == (2, 2, 2)
    assert grays[127] == (254, 254, 254)


def test_hue_components_in_range():
    for step in range(50):
        rgb = hue_to_rgb(step / 49)
        assert all(0 <= c <= 255 for c in rgb)


def test_invalid_dimensions():
    with pytest.raises(ValueError):
        Canvas(0, 5)