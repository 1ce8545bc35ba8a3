import math

import pytest

from stroop_lab.catalog import catalog_from_dict
from stroop_lab.results import (
    TrialResult,
    format_summary,
    interpret_stroop_effect,
    round_for_display,
    summarize,
    summary_text,
)

CATALOG = catalog_from_dict(
    {"red": "#f43f5e", "green": "#34d399", "yellow": "#fbbf24"}
)
WORDS = CATALOG.names


def make_result(
    rt: float,
    congruent: bool = True,
    correct: bool = True,
    word: str = "red",
    session_id: str = "abc",
) -> TrialResult:
    if congruent:
        color = CATALOG.color_of(word)
    else:
        color = CATALOG.color_of(WORDS[(WORDS.index(word) + 1) % 3])
    response = CATALOG.category_for_color(color).name
    if not correct:
        response = word if not congruent else WORDS[(WORDS.index(word) + 2) % 3]

    return TrialResult(
        session_id=session_id,
        word_text=word,
        font_color=color,
        is_congruent=congruent,
        reaction_time_ms=rt,
        user_response=response,
        is_correct=correct,
    )


def test_congruent_mean():
    rts = [400, 420, 440, 460, 480, 500, 520, 540, 560, 580]
    results = [make_result(rt, word=WORDS[i % 3]) for i, rt in enumerate(rts)]

    summary = summarize(results)
    assert summary.congruent_avg == 490
    assert summary.incongruent_avg == 0  # no data
    assert summary.accuracy == 100


def test_stroop_effect_and_accuracy():
    results = [make_result(rt) for rt in [380, 390, 400, 410, 420] * 2]
    results += [make_result(rt, congruent=False) for rt in [500, 525, 550, 575, 600] * 2]

    summary = summarize(results)
    assert summary.congruent_avg == 400
    assert summary.incongruent_avg == 550
    assert summary.stroop_effect == 150
    assert summary.accuracy == 100
    assert summary.total_trials == 20
    assert summary.correct_trials == 20


def test_accuracy_half():
    results = [make_result(500, congruent=i % 2 == 0, correct=i < 5) for i in range(10)]

    summary = summarize(results)
    assert summary.accuracy == 50
    assert summary.correct_trials == 5
    assert summary.total_trials == 10


def test_error_trials_excluded_from_means():
    results = [
        make_result(400),
        make_result(600),
        make_result(5000, correct=False),
        make_result(700, congruent=False),
        make_result(9000, congruent=False, correct=False),
    ]

    summary = summarize(results)
    assert summary.congruent_avg == 500
    assert summary.incongruent_avg == 700
    assert summary.stroop_effect == 200
    assert summary.accuracy == pytest.approx(60)


def test_negative_stroop_effect_is_kept():
    results = [make_result(600), make_result(450, congruent=False)]
    assert summarize(results).stroop_effect == -150


def test_empty_results():
    summary = summarize([])
    assert summary.congruent_avg == 0
    assert summary.incongruent_avg == 0
    assert summary.stroop_effect == 0
    assert summary.total_trials == 0
    assert summary.correct_trials == 0
    assert summary.accuracy is None
    assert summary.by_category == {}


def test_empty_mean_as_none():
    results = [make_result(450)]
    summary = summarize(results, empty_mean=None)

    assert summary.congruent_avg == 450
    assert summary.incongruent_avg is None
    assert summary.stroop_effect is None


def test_all_errors():
    results = [make_result(400, correct=False), make_result(500, congruent=False, correct=False)]
    summary = summarize(results)

    assert summary.congruent_avg == 0
    assert summary.incongruent_avg == 0
    assert summary.accuracy == 0
    assert not math.isnan(summary.stroop_effect)


def test_by_category():
    results = [
        make_result(400, word="red"),
        make_result(500, word="red"),
        make_result(650, congruent=False, word="red"),
        make_result(300, word="green"),
        make_result(900, congruent=False, word="green", correct=False),
    ]

    summary = summarize(results, catalog=CATALOG)
    assert list(summary.by_category) == ["red", "green", "yellow"]

    red = summary.by_category["red"]
    assert red.congruent_avg == 450
    assert red.incongruent_avg == 650
    assert red.difference == 200

    green = summary.by_category["green"]
    assert green.congruent_avg == 300
    assert green.incongruent_avg == 0
    assert green.difference == -300

    yellow = summary.by_category["yellow"]
    assert yellow.congruent_avg == yellow.incongruent_avg == yellow.difference == 0

    # without catalog only the present words are listed
    assert list(summarize(results).by_category) == ["red", "green"]


def test_summarize_is_pure():
    results = [make_result(410 + i, congruent=i % 2 == 0, correct=i != 3) for i in range(8)]

    assert summarize(results, catalog=CATALOG) == summarize(results, catalog=CATALOG)
    assert summarize(iter(results)) == summarize(results)


def test_result_dict_round_trip_and_validation():
    result = make_result(512.25, congruent=False)
    assert TrialResult.from_dict(result.to_dict()) == result
    assert set(result.to_dict()) == {
        "session_id",
        "word_text",
        "font_color",
        "is_congruent",
        "reaction_time_ms",
        "user_response",
        "is_correct",
    }

    data = result.to_dict()
    del data["is_correct"]
    with pytest.raises(ValueError):
        TrialResult.from_dict(data)

    with pytest.raises(ValueError):
        TrialResult.from_dict({**result.to_dict(), "reaction_time_ms": -1})

    # json.loads accepts Infinity, it must not end up in the summary
    with pytest.raises(ValueError):
        TrialResult.from_dict({**result.to_dict(), "reaction_time_ms": float("inf")})

    with pytest.raises(ValueError):
        TrialResult.from_dict({**result.to_dict(), "is_congruent": "false"})

    with pytest.raises(ValueError):
        TrialResult.from_dict({**result.to_dict(), "is_correct": 2})

    # booleans as stored by sqlite
    row = {**result.to_dict(), "is_congruent": 0, "is_correct": 1}
    assert TrialResult.from_dict(row) == result


def test_display_rounding():
    assert round_for_display(489.5) == 490
    assert round_for_display(489.49) == 489
    assert round_for_display(-10.5) == -10
    assert round_for_display(None) is None

    results = [make_result(400.4), make_result(550.6, congruent=False)]
    summary = summarize(results)
    vals = format_summary(summary)

    # the summary itself stays unrounded
    assert summary.stroop_effect == pytest.approx(150.2)
    assert vals["congruent_avg"] == "400ms"
    assert vals["incongruent_avg"] == "551ms"
    assert vals["stroop_effect"] == "+150ms"
    assert vals["accuracy"] == "100%"
    assert vals["trials"] == "2/2"


def test_display_of_missing_values():
    vals = format_summary(summarize([], empty_mean=None))
    assert vals["accuracy"] == "n/a"
    assert vals["congruent_avg"] == "n/a"
    assert vals["stroop_effect"] == "n/a"


def test_interpretation():
    assert interpret_stroop_effect(150).startswith("is typical")
    assert interpret_stroop_effect(75).startswith("shows moderate")
    assert interpret_stroop_effect(20).startswith("is quite low")
    assert interpret_stroop_effect(-20).startswith("is quite low")
    assert interpret_stroop_effect(150, {"stroop_effect_typical": "X"}) == "X"


def test_summary_text():
    results = [make_result(400), make_result(550, congruent=False)]
    text = summary_text(summarize(results, catalog=CATALOG))

    assert "Congruent: 400ms" in text
    assert "Stroop Effect: +150ms" in text
    assert "Accuracy: 100%" in text
    assert "is typical" in text
    assert "yellow: +0ms" in text
