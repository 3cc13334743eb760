import pytest

from bountypairing.models.player import Player
from bountypairing.type_hints import BLACK, WHITE


def make_player(
    pid,
    score=0.0,
    seed=1,
    opponents=(),
    colors=(),
    **kwargs,
):
    """Player snapshot with the history fields filled in consistently."""
    colors = tuple(colors)
    kwargs.setdefault("games_played", len([c for c in colors if c in (WHITE, BLACK)]))
    return Player(
        id=pid,
        name=pid,
        score=score,
        seed=seed,
        opponent_ids=frozenset(opponents),
        color_history=colors,
        **kwargs,
    )


@pytest.fixture
def player():
    return make_player


@pytest.fixture
def field_of_eight():
    return [make_player(f"P{i}", seed=i) for i in range(1, 9)]
