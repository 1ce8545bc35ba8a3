import random
import uuid
from dataclasses import dataclass, field

from stroop_lab.catalog import Catalog
from stroop_lab.utils.logging import logger


@dataclass(frozen=True)
class Trial:
    word_text: str
    font_color: str
    is_congruent: bool
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


def balanced_names(catalog: Catalog, n: int, rng: random.Random) -> list[str]:
    """Spread `n` draws as evenly as possible over the catalog. Each category
    appears n // k or n // k + 1 times, the categories receiving the
    remainder are drawn at random."""
    names = catalog.names
    k = len(names)
    return names * (n // k) + rng.sample(names, n % k)


def generate_trials(
    catalog: Catalog, n_trials: int = 20, rng: random.Random | None = None
) -> list[Trial]:
    """Create a shuffled sequence of trials for a single session

    Parameters
    ----------
    catalog : Catalog
        the categories to draw words and colors from

    n_trials : int (default: 20)
        number of trials, half of them congruent and half incongruent

    rng : random.Random | None
        random generator to use, pass a seeded instance for a reproducible
        sequence

    Returns
    -------
    list[Trial]
        trials in presentation order

    """
    if n_trials <= 0 or n_trials % 2 != 0:
        raise ValueError(
            f"Please select {n_trials=} to be a positive, even number to allow"
            " for an equal number of congruent and incongruent trials"
        )

    rng = rng or random.Random()
    n_each = n_trials // 2

    trials = [
        Trial(word_text=name, font_color=catalog.color_of(name), is_congruent=True)
        for name in balanced_names(catalog, n_each, rng)
    ]

    for name in balanced_names(catalog, n_each, rng):
        font_color = rng.choice([c.color for c in catalog if c.name != name])
        trials.append(Trial(word_text=name, font_color=font_color, is_congruent=False))

    rng.shuffle(trials)

    logger.debug(f"Generated trials: {[(t.word_text, t.font_color) for t in trials]}")
    return trials


def is_correct_response(trial: Trial, response: str, catalog: Catalog) -> bool:
    """A response is correct if it names the category of the FONT COLOR of the
    trial. The printed word is irrelevant for correctness."""
    category = catalog.category_for_color(trial.font_color)
    if category is None:
        return False
    return response == category.name
