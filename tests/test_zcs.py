import random

import pytest

from natsim import zcs
from natsim.zcs import (
    Classifier,
    ClassifierSystem,
    SpecError,
    Woods,
    condition_matches,
    parse_world,
)

ROOM = "3 3\nOOO\nO.F\nOOO\n"


def make_system(**kwargs):
    params = dict(size=10, cond_len=4, act_len=2, rng=random.Random(1))
    params.update(kwargs)
    return ClassifierSystem(**params)


def test_parse_world_cells():
    grid = parse_world("# a comment\n2 2\nF. # trailing\nO.\n")
    assert grid == [[zcs.FOOD, zcs.EMPTY], [zcs.ROCK, zcs.EMPTY]]


def test_parse_world_tokens_without_spaces():
    assert parse_world("3 1 .FO") == [[zcs.EMPTY, zcs.FOOD, zcs.ROCK]]


@pytest.mark.parametrize("text", ["", "3", "x 2 ....", "2 2\n..\n.", "0 2"])
def test_parse_world_errors(text):
    with pytest.raises(SpecError):
        parse_world(text)


def test_condition_matches():
    assert condition_matches("1#0#", "1100")
    assert condition_matches("####", "0101")
    assert not condition_matches("1#0#", "0100")


def test_woods_starts_on_only_empty_cell():
    woods = Woods(parse_world(ROOM), random.Random(3))
    assert (woods.x, woods.y) == (1, 1)
    assert woods.grid[1][1] == zcs.ME


def test_woods_environment_encoding():
    woods = Woods(parse_world(ROOM), random.Random(3))
    env = woods.environment()
    assert len(env) == 16
    assert env == "1010111010101010"


def test_move_into_rock_stays():
    woods = Woods(parse_world(ROOM), random.Random(3))
    assert woods.move("000") == 0
    assert (woods.x, woods.y) == (1, 1)


def test_move_onto_food_and_restart():
    woods = Woods(parse_world(ROOM), random.Random(3))
    assert woods.move("010") == zcs.FOOD_REWARD
    assert (woods.x, woods.y) == (2, 1)
    assert woods.grid[1][1] == zcs.EMPTY
    woods.restart()
    assert woods.grid[1][2] == zcs.FOOD
    assert (woods.x, woods.y) == (1, 1)
    assert woods.grid[1][1] == zcs.ME


def test_woods_without_empty_cell():
    with pytest.raises(SpecError):
        Woods(parse_world("2 1 FO"), random.Random(0))


def test_initial_population():
    system = make_system(sinit=7.0)
    assert len(system.population) == 10
    for c in system.population:
        assert c.strength == 7.0
        assert len(c.condition) == 4 and set(c.condition) <= set("01#")
        assert len(c.action) == 2 and set(c.action) <= set("01")


def test_match_returns_only_matching():
    system = make_system()
    matches = system.match("0110")
    assert all(condition_matches(c.condition, "0110") for c in matches)
    expected = sum(condition_matches(c.condition, "0110") for c in system.population)
    assert len(matches) == expected


def test_cover_match_on_empty_matches_adds_matching_classifier():
    system = make_system()
    mean = sum(c.strength for c in system.population) / system.size
    covered = system.cover_match([], "1010")
    assert len(covered) == 1
    assert condition_matches(covered[0].condition, "1010")
    assert covered[0].strength == pytest.approx(mean)
    assert covered[0] in system.population


def test_cover_match_keeps_strong_matches():
    system = make_system(cover=0.5)
    strong = system.population[:5]
    assert system.cover_match(strong, "0000") == strong


def test_action_set_shares_one_action():
    system = make_system()
    matches = list(system.population)
    actions = system.action_set(matches)
    assert actions
    assert len({c.action for c in actions}) == 1
    assert all(c in matches for c in actions)


def test_action_set_empty_raises():
    with pytest.raises(ValueError):
        make_system().action_set([])


def test_update_conserves_strength_when_drate_is_one():
    system = make_system(lrate=0.3, drate=1.0)
    actor = Classifier(10.0, "####", "01")
    earlier = Classifier(4.0, "####", "11")
    before = actor.strength + earlier.strength
    system.update(0, [actor], [actor], [earlier])
    assert actor.strength < 10.0
    assert actor.strength + earlier.strength == pytest.approx(before)


def test_update_reward_goes_to_actor():
    system = make_system(lrate=1.0)
    actor = Classifier(10.0, "####", "01")
    system.update(500, [actor], [actor], [])
    assert actor.strength == pytest.approx(500)


def test_update_taxes_other_actions():
    system = make_system(trate=0.1)
    actor = Classifier(10.0, "####", "01")
    rival = Classifier(10.0, "####", "10")
    system.update(0, [actor, rival], [actor], [])
    assert rival.strength < 10.0


def test_pick_skips_index():
    system = make_system(size=2)
    for _ in range(20):
        assert system.pick_large(0) == 1
        assert system.pick_small(1) == 0
        assert 0 <= system.pick_large(None) < 2


@pytest.mark.parametrize("split", [True, False])
def test_ga_keeps_population_well_formed(split):
    system = make_system(crate=1.0, mrate=0.5, split_crossover=split)
    for _ in range(30):
        system.ga()
    assert len(system.population) == 10
    for c in system.population:
        assert len(c.condition) == 4 and set(c.condition) <= set("01#")
        assert len(c.action) == 2 and set(c.action) <= set("01")
        assert c.strength > 0


def test_log_lines_sorted_strongest_first():
    system = make_system(size=3)
    for c, s in zip(system.population, (1.0, 3.0, 2.0)):
        c.strength = s
    lines = system.log_lines()
    assert len(lines) == 3
    strengths = [float(line.rsplit(" : ", 1)[1]) for line in lines]
    assert strengths == sorted(strengths, reverse=True)
    assert lines[0].endswith(" : 3.00000")


def test_main_runs_and_writes_log(tmp_path, monkeypatch, capsys):
    specs = tmp_path / "woods.txt"
    specs.write_text("4 4\n....\n.F..\n....\n....\n")
    monkeypatch.chdir(tmp_path)
    image = tmp_path / "out.pgm"
    result = zcs.main(["-specs", str(specs), "-steps", "4", "-avelen", "2",
                       "-size", "20", "-term", str(image)])
    assert result == 0
    log = (tmp_path / "zcs.log").read_text().splitlines()
    assert len(log) == 20
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 2
    assert all(len(line.split("\t")) == 3 for line in out)
    assert image.read_bytes().startswith(b"P5\n40 40\n255\n")


def test_main_missing_specs(tmp_path, capsys):
    assert zcs.main(["-specs", str(tmp_path / "missing.txt"), "-steps", "1"]) == 1
    assert "Cannot open specs file" in capsys.readouterr().err