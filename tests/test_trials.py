import random
from collections import Counter

import pytest

from stroop_lab.catalog import catalog_from_dict
from stroop_lab.trials import Trial, generate_trials, is_correct_response

CATALOG = catalog_from_dict(
    {
        "red": {"color": "#f43f5e", "key": "r"},
        "green": {"color": "#34d399", "key": "g"},
        "yellow": {"color": "#fbbf24", "key": "y"},
    }
)


@pytest.mark.parametrize("seed", range(20))
def test_trials_balance(seed):
    trials = generate_trials(CATALOG, n_trials=20, rng=random.Random(seed))

    assert len(trials) == 20
    coh = [t for t in trials if t.is_congruent]
    icoh = [t for t in trials if not t.is_congruent]
    assert len(coh) == len(icoh) == 10

    # 10 trials over 3 categories -> 3 or 4 per category
    for group in [coh, icoh]:
        counts = Counter(t.word_text for t in group)
        assert set(counts) == set(CATALOG.names)
        assert max(counts.values()) - min(counts.values()) <= 1


@pytest.mark.parametrize("seed", range(20))
def test_trials_congruency(seed):
    trials = generate_trials(CATALOG, n_trials=20, rng=random.Random(seed))

    for t in trials:
        assert t.is_congruent == (CATALOG.color_of(t.word_text) == t.font_color)
        assert t.font_color in CATALOG.colors


def test_trials_ids_unique():
    trials = generate_trials(CATALOG)
    assert len({t.id for t in trials}) == len(trials)


def test_trials_are_shuffled():
    # with 20 different seeds, not every sequence can start with a block of
    # 10 congruent trials
    block_starts = 0
    for seed in range(20):
        trials = generate_trials(CATALOG, rng=random.Random(seed))
        if all(t.is_congruent for t in trials[:10]):
            block_starts += 1

    assert block_starts < 20


def test_incongruent_colors_vary():
    colors = Counter()
    for seed in range(10):
        trials = generate_trials(CATALOG, rng=random.Random(seed))
        colors.update(
            (t.word_text, t.font_color) for t in trials if not t.is_congruent
        )

    # every word is shown in both mismatching colors at some point
    for word in CATALOG.names:
        other_colors = {c for w, c in colors if w == word}
        assert len(other_colors) == 2


def test_trials_seed_reproducible():
    a = generate_trials(CATALOG, rng=random.Random(3))
    b = generate_trials(CATALOG, rng=random.Random(3))
    assert [(t.word_text, t.font_color) for t in a] == [
        (t.word_text, t.font_color) for t in b
    ]


def test_trials_invalid_n():
    with pytest.raises(ValueError):
        generate_trials(CATALOG, n_trials=13)

    with pytest.raises(ValueError):
        generate_trials(CATALOG, n_trials=0)


def test_response_judged_on_font_color():
    # the word says red, but it is printed in green
    trial = Trial(word_text="red", font_color="#34d399", is_congruent=False)

    assert is_correct_response(trial, "green", CATALOG)
    assert not is_correct_response(trial, "red", CATALOG)
    assert not is_correct_response(trial, "yellow", CATALOG)


def test_response_congruent_trial():
    trial = Trial(word_text="yellow", font_color="#fbbf24", is_congruent=True)

    assert is_correct_response(trial, "yellow", CATALOG)
    for other in ["red", "green", "blue", ""]:
        assert not is_correct_response(trial, other, CATALOG)


def test_response_unknown_color():
    trial = Trial(word_text="red", font_color="#000000", is_congruent=False)
    assert not is_correct_response(trial, "red", CATALOG)
