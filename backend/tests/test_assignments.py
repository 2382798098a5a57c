import itertools

from wavelength.runtime_assignments import (
    drop_player_assignments,
    find_prompt,
    generate_assignments,
)
from wavelength.runtime_constants import SCALES, TARGET_MAX, TARGET_MIN
from wavelength.runtime_types import Clue, Game
from wavelength.runtime_utils import normalize_room_code, parse_guess_value, sanitize_player_name


def test_each_player_gets_distinct_scales():
    for player_count in (1, 3, 4, 5, 7, 8, 10):
        ids = [f"p{index}" for index in range(player_count)]
        assignments = generate_assignments(ids, SCALES)
        assert list(assignments) == ids
        for prompts in assignments.values():
            scale_ids = [prompt.scale["id"] for prompt in prompts]
            assert len(scale_ids) == len(set(scale_ids))


def test_prompt_counts_follow_player_count():
    assert {len(p) for p in generate_assignments(["a", "b", "c"], SCALES).values()} == {3}
    assert {len(p) for p in generate_assignments(list("abcdef"), SCALES).values()} == {2}
    assert {len(p) for p in generate_assignments(list("abcdefghi"), SCALES).values()} == {1}


def test_never_assigns_more_scales_than_catalog_has():
    tiny_catalog = [{"id": "cold-hot"}, {"id": "sad-happy"}]
    assignments = generate_assignments(["a", "b"], tiny_catalog)
    for prompts in assignments.values():
        assert len(prompts) == 2
        assert {prompt.scale["id"] for prompt in prompts} == {"cold-hot", "sad-happy"}


def test_targets_are_in_range():
    for _ in range(50):
        for prompts in generate_assignments(["a", "b", "c", "d"], SCALES).values():
            for prompt in prompts:
                assert TARGET_MIN <= prompt.target <= TARGET_MAX
                assert isinstance(prompt.target, int)


def test_prompt_ids_are_unique_across_rounds():
    seen: set[str] = set()
    for _ in range(20):
        assignments = generate_assignments(["a", "b", "c"], SCALES)
        for prompt in itertools.chain.from_iterable(assignments.values()):
            assert prompt.prompt_id not in seen
            seen.add(prompt.prompt_id)


def test_custom_prompt_id_factory():
    counter = itertools.count(1)
    assignments = generate_assignments(["a"], SCALES, new_prompt_id=lambda: f"id-{next(counter)}")
    assert [prompt.prompt_id for prompt in assignments["a"]] == ["id-1", "id-2", "id-3"]


def test_drop_player_assignments_only_touches_that_player():
    game = Game(assignments=generate_assignments(["a", "b"], SCALES))
    for peer_id, prompts in game.assignments.items():
        for prompt in prompts:
            game.clues[prompt.prompt_id] = Clue(peer_id, peer_id, prompt.scale, prompt.target, "hint")

    a_prompt_ids = {prompt.prompt_id for prompt in game.assignments["a"]}
    removed = drop_player_assignments(game, "a")

    assert set(removed) == a_prompt_ids
    assert "a" not in game.assignments
    assert a_prompt_ids.isdisjoint(game.clues)
    assert {clue.author_id for clue in game.clues.values()} == {"b"}
    assert len(game.clues) == len(game.assignments["b"])


def test_find_prompt_is_scoped_to_owner():
    game = Game(assignments=generate_assignments(["a", "b"], SCALES))
    prompt = game.assignments["a"][0]
    assert find_prompt(game, "a", prompt.prompt_id) is prompt
    assert find_prompt(game, "b", prompt.prompt_id) is None
    assert find_prompt(game, "a", "missing") is None


def test_parse_guess_value():
    assert parse_guess_value(42) == 42
    assert parse_guess_value("61") == 61
    assert parse_guess_value(12.5) == 12.5
    assert parse_guess_value(-5) == 0
    assert parse_guess_value(250) == 100
    assert parse_guess_value(10**400) == 100
    assert parse_guess_value(-(10**400)) == 0
    assert parse_guess_value("1e400") == 100
    assert parse_guess_value("inf") == 100
    assert parse_guess_value("abc") is None
    assert parse_guess_value("") is None
    assert parse_guess_value(None) is None
    assert parse_guess_value(True) is None
    assert parse_guess_value(float("nan")) is None
    assert parse_guess_value([1]) is None


def test_normalizers():
    assert normalize_room_code("  abcd ") == "ABCD"
    assert normalize_room_code(None) == ""
    assert sanitize_player_name("   ") == "Player"
    assert sanitize_player_name("  Ana   Maria ") == "Ana Maria"
    assert len(sanitize_player_name("x" * 100)) == 24
