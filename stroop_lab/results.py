import math
from dataclasses import asdict, dataclass, field, fields
from typing import Iterable

from stroop_lab.catalog import Catalog


@dataclass(frozen=True)
class TrialResult:
    """A single response. The fields match the columns of the result sink."""

    session_id: str
    word_text: str
    font_color: str
    is_congruent: bool
    reaction_time_ms: float
    user_response: str
    is_correct: bool

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TrialResult":
        missing = [f.name for f in fields(cls) if f.name not in data]
        if missing:
            raise ValueError(f"TrialResult is missing fields {missing}")

        rt = float(data["reaction_time_ms"])
        if not (math.isfinite(rt) and rt >= 0):
            raise ValueError(f"Invalid reaction time {rt=}")

        return cls(
            session_id=str(data["session_id"]),
            word_text=str(data["word_text"]),
            font_color=str(data["font_color"]),
            is_congruent=_as_bool(data["is_congruent"], "is_congruent"),
            reaction_time_ms=rt,
            user_response=str(data["user_response"]),
            is_correct=_as_bool(data["is_correct"], "is_correct"),
        )


def _as_bool(value, name: str) -> bool:
    # sqlite stores booleans as 0 / 1
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Invalid boolean for {name}: {value=}")


@dataclass(frozen=True)
class CategoryStats:
    congruent_avg: float | None
    incongruent_avg: float | None
    difference: float | None


@dataclass(frozen=True)
class ResultsSummary:
    congruent_avg: float | None
    incongruent_avg: float | None
    stroop_effect: float | None
    total_trials: int
    correct_trials: int
    accuracy: float | None  # None if there are no trials
    by_category: dict[str, CategoryStats] = field(default_factory=dict)


def mean_rt(results: Iterable[TrialResult], empty: float | None = 0.0) -> float | None:
    """Mean reaction time of the results or `empty` if there are none"""
    rts = [r.reaction_time_ms for r in results]
    if not rts:
        return empty
    return sum(rts) / len(rts)


def _difference(a: float | None, b: float | None) -> float | None:
    if a is None or b is None:
        return None
    return a - b


def _condition_means(
    results: list[TrialResult], empty_mean: float | None
) -> tuple[float | None, float | None]:
    # only correct responses contribute to the reaction times
    congruent_avg = mean_rt(
        (r for r in results if r.is_congruent and r.is_correct), empty=empty_mean
    )
    incongruent_avg = mean_rt(
        (r for r in results if not r.is_congruent and r.is_correct), empty=empty_mean
    )
    return congruent_avg, incongruent_avg


def summarize(
    results: Iterable[TrialResult],
    catalog: Catalog | None = None,
    empty_mean: float | None = 0.0,
) -> ResultsSummary:
    """Compute the descriptive statistics of a result set

    Parameters
    ----------
    results : Iterable[TrialResult]
        the results of a session

    catalog : Catalog | None
        if provided, every category of the catalog is listed in the per
        category breakdown (in catalog order), also without any results.
        Otherwise only the words present in the results are listed.

    empty_mean : float | None (default: 0.0)
        value used for the mean of an empty subset of trials. The default of
        0.0 has to be read as "no data", pass None to get an explicit absent
        value instead.

    Returns
    -------
    ResultsSummary
        the summary, `accuracy` is None if there are no results at all

    """
    results = list(results)

    congruent_avg, incongruent_avg = _condition_means(results, empty_mean)
    correct_trials = sum(1 for r in results if r.is_correct)
    total_trials = len(results)
    accuracy = 100 * correct_trials / total_trials if total_trials else None

    words = catalog.names if catalog is not None else []
    for r in results:
        if r.word_text not in words:
            words.append(r.word_text)

    by_category = {}
    for word in words:
        cat_congruent, cat_incongruent = _condition_means(
            [r for r in results if r.word_text == word], empty_mean
        )
        by_category[word] = CategoryStats(
            congruent_avg=cat_congruent,
            incongruent_avg=cat_incongruent,
            difference=_difference(cat_incongruent, cat_congruent),
        )

    return ResultsSummary(
        congruent_avg=congruent_avg,
        incongruent_avg=incongruent_avg,
        stroop_effect=_difference(incongruent_avg, congruent_avg),
        total_trials=total_trials,
        correct_trials=correct_trials,
        accuracy=accuracy,
        by_category=by_category,
    )


# ----------------------------------------------------------------------------
#                      Display
# ----------------------------------------------------------------------------
def round_for_display(value: float | None) -> int | None:
    if value is None:
        return None
    return math.floor(value + 0.5)


def format_summary(summary: ResultsSummary) -> dict[str, str]:
    """Rounded, human readable values of a summary. Missing values are
    rendered as `n/a`."""

    def fmt(value: float | None, unit: str, signed: bool = False) -> str:
        rounded = round_for_display(value)
        if rounded is None:
            return "n/a"
        return f"{rounded:+d}{unit}" if signed else f"{rounded}{unit}"

    return {
        "congruent_avg": fmt(summary.congruent_avg, "ms"),
        "incongruent_avg": fmt(summary.incongruent_avg, "ms"),
        "stroop_effect": fmt(summary.stroop_effect, "ms", signed=True),
        "accuracy": fmt(summary.accuracy, "%"),
        "trials": f"{summary.correct_trials}/{summary.total_trials}",
    }


def interpret_stroop_effect(effect: float | None, msgs: dict | None = None) -> str:
    msgs = msgs or {}
    if effect is None:
        return msgs.get("stroop_effect_missing", "could not be computed.")
    if effect > 100:
        return msgs.get(
            "stroop_effect_typical",
            "is typical! Most people experience a 100-200ms delay on incongruent"
            " trials.",
        )
    if effect > 50:
        return msgs.get(
            "stroop_effect_moderate",
            "shows moderate interference. Your brain handles the conflict"
            " relatively well!",
        )
    return msgs.get(
        "stroop_effect_low", "is quite low! You have excellent selective attention."
    )


def summary_text(summary: ResultsSummary, msgs: dict | None = None) -> str:
    """Multiline text of a summary as shown at the end of a session"""
    vals = format_summary(summary)
    lines = [
        f"Congruent: {vals['congruent_avg']}",
        f"Incongruent: {vals['incongruent_avg']}",
        f"Stroop Effect: {vals['stroop_effect']}",
        f"Accuracy: {vals['accuracy']} ({vals['trials']} correct)",
    ]
    for word, stats in summary.by_category.items():
        diff = round_for_display(stats.difference)
        lines.append(f"  {word}: {'n/a' if diff is None else f'{diff:+d}ms'}")

    if summary.total_trials:
        lines.append(
            f"Your Stroop Effect of {vals['stroop_effect']}"
            f" {interpret_stroop_effect(summary.stroop_effect, msgs)}"
        )

    return "\n".join(lines)
