from dataclasses import dataclass, field
from pathlib import Path

import yaml

from stroop_lab.utils.logging import logger


@dataclass(frozen=True)
class Category:
    name: str  # the word, e.g. "red"
    color: str  # canonical font color, e.g. "#f43f5e"
    key: str = ""  # response key used by the front end


@dataclass(frozen=True)
class Catalog:
    """The fixed set of word / color categories of the paradigm"""

    categories: tuple[Category, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if len(self.categories) < 2:
            raise ValueError(
                f"At least two categories are needed to create incongruent"
                f" stimuli, got {len(self.categories)=}"
            )

        for attr in ["name", "color"]:
            values = [getattr(c, attr) for c in self.categories]
            if len(set(values)) != len(values):
                raise ValueError(f"Category {attr}s must be unique, got {values}")

        keys = [c.key for c in self.categories if c.key]
        if len(set(keys)) != len(keys):
            raise ValueError(f"Response keys must be unique, got {keys}")

    def __iter__(self):
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    def __contains__(self, name) -> bool:
        return name in self.names

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]

    @property
    def colors(self) -> list[str]:
        return [c.color for c in self.categories]

    def get(self, name: str) -> Category:
        for c in self.categories:
            if c.name == name:
                return c
        raise KeyError(f"Unknown category {name=}, known are {self.names}")

    def color_of(self, name: str) -> str:
        return self.get(name).color

    def category_for_color(self, color: str) -> Category | None:
        for c in self.categories:
            if c.color.lower() == color.lower():
                return c
        return None

    def category_for_key(self, key: str) -> Category | None:
        for c in self.categories:
            if c.key and c.key == key.lower():
                return c
        return None


def catalog_from_dict(words: dict) -> Catalog:
    """Create a catalog from the `words` section of the stimuli config

    Parameters
    ----------
    words : dict
        mapping of word -> {"color": str, "key": str}. A plain color string
        is accepted instead of the dict.

    """
    categories = []
    for name, cfg in words.items():
        if isinstance(cfg, str):
            cfg = {"color": cfg}
        categories.append(
            Category(
                name=name, color=cfg["color"], key=str(cfg.get("key", "")).lower()
            )
        )

    return Catalog(categories=tuple(categories))


def load_catalog(config_dir: Path = Path("./configs")) -> Catalog:
    stim_cfg = yaml.safe_load(open(Path(config_dir) / "stimuli.yaml"))
    catalog = catalog_from_dict(stim_cfg["words"])
    logger.debug(f"Loaded catalog {catalog.names}")
    return catalog
