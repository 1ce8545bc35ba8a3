import random
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from stroop_lab.catalog import Catalog, load_catalog
from stroop_lab.session import Session
from stroop_lab.storage import PersistenceWorker
from stroop_lab.utils.logging import logger


@dataclass
class ExperimentContext:
    catalog: Catalog
    msgs: dict = field(default_factory=dict)

    # parametrization
    n_trials: int = 20
    inter_trial_delay_s: float = 0.5  # blank screen between trials
    seed: int | None = None  # None -> a new random sequence per session

    # files
    results_dir: Path = Path("./data")
    snapshot_file: Path = Path("./data/stroop_session.json")

    # GUI
    fullscreen: bool = False
    screen_width: int = 1200
    screen_height: int = 800
    font_size: int = 72
    instruction_font_size: int = 18
    background_color: str = "#111827"
    text_color: str = "#e5e7eb"

    def __post_init__(self):
        self.results_dir = Path(self.results_dir)
        self.snapshot_file = Path(self.snapshot_file)

    def new_session(self, worker: PersistenceWorker | None = None) -> Session:
        """A session in NOT_STARTED state, configured by this context"""
        rng = random.Random(self.seed) if self.seed is not None else None
        return Session(
            catalog=self.catalog,
            n_trials=self.n_trials,
            rng=rng,
            worker=worker,
            snapshot_file=self.snapshot_file,
        )


def load_context(config_dir: Path = Path("./configs"), **kwargs) -> ExperimentContext:
    config_dir = Path(config_dir)
    task_cfg = yaml.safe_load(open(config_dir / "task.yaml"))
    stim_cfg = yaml.safe_load(open(config_dir / "stimuli.yaml"))
    gui_cfg = yaml.safe_load(open(config_dir / "gui.yaml"))

    kw = {
        **task_cfg["general"],
        **task_cfg["files"],
        **gui_cfg,
        "catalog": load_catalog(config_dir),
        "msgs": stim_cfg.get("msgs", {}),
    }

    # use kwargs to overwrite
    kw.update(**kwargs)

    # log the parameters to the data as well
    logger.info(f"Creating ExperimentContext with {kw=}")

    return ExperimentContext(**kw)
