import pytest

from natsim.spider import escape_time, level_for, main, render


def test_origin_never_escapes():
    assert escape_time(0.0, 0.0, 160, 16.0) is None


def test_far_point_escapes_immediately():
    assert escape_time(10.0, 10.0, 160, 16.0) == 1


def test_escape_is_bounded_by_maxit():
    for a in (-2.0, -1.0, 0.3, 1.5):
        k = escape_time(a, 0.5, 20, 16.0)
        assert k is None or 1 <= k <= 20


def test_level_for_simple_and_reversed():
    assert level_for(5, 16, 1, False) == 5
    assert level_for(5, 16, 1, True) == 10
    assert level_for(21, 16, 1, False) == 5


def test_level_for_rejects_zero_divisor():
    with pytest.raises(ValueError):
        level_for(3, 16, 0, False)


def test_render_levels_in_range():
    canvas = render(12, 9, 40, 8, 16.0, -2.4, 1.4, -1.4, 1, False)
    assert (canvas.width, canvas.height) == (12, 9)
    values = {canvas.get(x, y) for x in range(12) for y in range(9)}
    assert values <= set(range(8))
    assert len(values) > 1


def test_render_reverse_mirrors_escaped_points():
    plain = render(10, 8, 30, 8, 16.0, -2.4, 1.4, -1.4, 1, False)
    rev = render(10, 8, 30, 8, 16.0, -2.4, 1.4, -1.4, 1, True)
    # Corner points escape at once, so they are drawn in both renderings.
    assert plain.get(0, 0) + rev.get(0, 0) == 7


def test_render_needs_two_rows():
    with pytest.raises(ValueError):
        render(5, 1, 10, 4, 16.0, -2.4, 1.4, -1.4, 1, False)


def test_main_writes_image(tmp_path):
    out = tmp_path / "spider.pgm"
    assert main(["-width", "8", "-height", "6", "-maxit", "20", "-term", str(out)]) == 0
    assert out.read_bytes().startswith(b"P5\n8 6\n255\n")