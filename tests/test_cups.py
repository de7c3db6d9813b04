import pytest

from natsim.cups import (
    CUP,
    EMPTY,
    ME,
    MECUP,
    REWARD,
    WALL,
    Cups,
    main,
)
from natsim.zcs import SpecError, parse_world

# Columns: 0 wall, 1 empty, 2 empty, 3 cup, 4 start, 5 cup, 6 empty, 7 empty, 8 wall.
SPEC = "9 1\nO . . F . F . . O\n"


@pytest.fixture
def world():
    return Cups(parse_world(SPEC))


def test_start_position_and_environment(world):
    assert (world.x, world.y) == (4, 0)
    assert world.grid[0][4] == ME
    assert world.environment() == "11000"


def test_move_onto_cup_and_pick_up(world):
    assert world.move("010") == 0
    assert world.x == 5
    assert world.grid[0][5] == MECUP
    assert world.grid[0][4] == EMPTY
    assert world.environment() == "00000"
    assert world.move("110") == 0
    assert world.cups == 1
    assert world.grid[0][5] == ME


def test_both_cups_give_reward(world):
    world.move("010")
    world.move("110")
    world.move("101")
    assert world.register == 1
    assert world.environment() == "10001"
    world.move("100")
    assert world.grid[0][3] == MECUP
    assert world.move("110") == REWARD
    assert world.cups == 2


def test_unpicked_cup_is_left_behind(world):
    world.move("100")
    assert world.grid[0][3] == MECUP
    world.move("100")
    assert world.grid[0][3] == CUP
    assert world.x == 2


def test_wall_collision_sets_sensor(world):
    for _ in range(3):
        world.move("100")
    assert world.x == 1
    world.move("100")
    assert world.x == 1
    assert world.col_left == 1
    assert world.environment()[2] == "1"
    world.move("000")
    assert world.col_left == 0


def test_right_wall_collision(world):
    world.move("010")
    world.move("010")
    world.move("010")
    world.move("010")
    assert world.x == 7
    world.move("010")
    assert world.x == 7
    assert world.col_right == 1
    assert world.grid[0][8] == WALL


def test_pick_up_on_empty_cell_does_nothing(world):
    assert world.move("110") == 0
    assert world.cups == 0
    assert world.grid[0][4] == ME


def test_restart_restores_world(world):
    original = [row[:] for row in world.grid]
    world.move("010")
    world.move("110")
    world.move("101")
    world.restart()
    assert world.grid == original
    assert (world.x, world.y) == (4, 0)
    assert world.cups == 0
    assert world.register == 0


def test_bad_action_rejected(world):
    with pytest.raises(ValueError):
        world.move("01")


def test_narrow_world_rejected():
    with pytest.raises(SpecError):
        Cups(parse_world("3 1\n. . .\n"))


def test_main_writes_log(tmp_path, monkeypatch, capsys):
    spec = tmp_path / "cups.txt"
    spec.write_text(SPEC)
    monkeypatch.chdir(tmp_path)
    code = main(["-specs", str(spec), "-steps", "3", "-size", "20",
                 "-avelen", "2", "-term", str(tmp_path / "out.pgm")])
    assert code == 0
    lines = (tmp_path / "zcscup.log").read_text().splitlines()
    assert len(lines) == 20
    strengths = [float(line.split(" : ")[2]) for line in lines]
    assert strengths == sorted(strengths, reverse=True)
    assert all(len(line.split(" : ")[0]) == 5 for line in lines)
    assert (tmp_path / "out.pgm").read_bytes().startswith(b"P5\n90 10\n255\n")
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 1


def test_main_missing_specs(tmp_path, capsys):
    assert main(["-specs", str(tmp_path / "missing.txt")]) == 1
    assert "Cannot open specs file" in capsys.readouterr().err