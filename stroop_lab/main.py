# A pyglet implementation of the Stroop task plus commands to inspect and
# clear the stored results

import sys
from pathlib import Path

import pyglet
from fire import Fire

from stroop_lab.context import load_context
from stroop_lab.plotting import write_report
from stroop_lab.results import summarize, summary_text
from stroop_lab.session import clear_snapshot, load_snapshot
from stroop_lab.storage import (
    PersistenceWorker,
    SinkError,
    clear_all_results,
    clear_session_results,
    get_result_sink,
)
from stroop_lab.task_manager import (
    StroopTaskStateManager,
    attach_handlers,
    hex_to_rgba,
)
from stroop_lab.utils.logging import logger, setup_logging


def ask_confirmation(msg: str) -> bool:
    return input(f"{msg} [y/N] ").strip().lower() in ("y", "yes")


def run_paradigm(
    config_dir: str = "./configs",
    logger_level: str | None = None,
    storage: str | None = None,
    seed: int | None = None,
    report: bool = True,
):
    """Run the Stroop paradigm in a pyglet window

    Parameters
    ----------
    config_dir : str (default: "./configs")
        Directory containing the yaml configuration files.

    logger_level : str | None  (default: None)
        Configuration level for the logger. This will overwrite the value from `configs/logging.yaml`.
        Common python logging names are accepted: DEBUG, INFO, WARNING, ERROR

    storage : str | None (default: None)
        Overwrite the backend configured in `configs/storage.yaml`, one of
        `sqlite`, `rest` or `none`.

    seed : int | None (default: None)
        Seed for the trial sequence. Overwrites the value from `configs/task.yaml`.

    report : bool (default: True)
        If True, an html report with the charts of the session is written to
        the results directory once all trials are done.

    """
    config_dir = Path(config_dir)
    setup_logging(config_dir, logger_level)

    kw = {"seed": seed} if seed is not None else {}
    ctx = load_context(config_dir, **kw)

    sink_kw = {"backend": storage} if storage is not None else {}
    worker = PersistenceWorker(get_result_sink(config_dir, **sink_kw))

    window = pyglet.window.Window(
        fullscreen=ctx.fullscreen,
        height=ctx.screen_height,
        width=ctx.screen_width,
        caption="Stroop Lab",
    )
    pyglet.gl.glClearColor(*[c / 255 for c in hex_to_rgba(ctx.background_color)])

    smgr = StroopTaskStateManager(ctx=ctx, window=window, worker=worker)
    attach_handlers(smgr)

    # Start running
    pyglet.clock.schedule_once(lambda dt: smgr.start_block(), 0.5)

    try:
        pyglet.app.run()
    finally:
        worker.stop()
        if worker.n_failed:
            logger.warning(f"{worker.n_failed} results could not be stored")

    if report and smgr.session.is_finished:
        write_report(
            smgr.session.results,
            ctx.results_dir / f"stroop_report_{smgr.session.session_id}.html",
            summary=summarize(smgr.session.results, catalog=ctx.catalog),
        )


def show_summary(config_dir: str = "./configs", snapshot_file: str | None = None):
    """Print the summary of the last completed session"""
    ctx = load_context(Path(config_dir))
    snapshot = load_snapshot(Path(snapshot_file or ctx.snapshot_file))
    if snapshot is None:
        print("No session found. Run the paradigm first.")
        sys.exit(1)

    summary = summarize(snapshot.results, catalog=ctx.catalog)
    print(f"Session {snapshot.session_id}")
    print(summary_text(summary, ctx.msgs))


def write_session_report(
    config_dir: str = "./configs",
    snapshot_file: str | None = None,
    file: str | None = None,
    show: bool = False,
):
    """Write the charts of the last completed session to an html file"""
    ctx = load_context(Path(config_dir))
    snapshot = load_snapshot(Path(snapshot_file or ctx.snapshot_file))
    if snapshot is None:
        print("No session found. Run the paradigm first.")
        sys.exit(1)

    file = file or ctx.results_dir / f"stroop_report_{snapshot.session_id}.html"
    write_report(
        snapshot.results,
        Path(file),
        summary=summarize(snapshot.results, catalog=ctx.catalog),
        show=show,
    )
    print(f"Report written to {file}")


def clear_session(
    config_dir: str = "./configs",
    session_id: str | None = None,
    storage: str | None = None,
    yes: bool = False,
):
    """Delete the results of a session (default: the last one) from the
    result storage. Asks for confirmation unless `yes` is set."""
    config_dir = Path(config_dir)
    ctx = load_context(config_dir)
    if session_id is None:
        snapshot = load_snapshot(ctx.snapshot_file)
        if snapshot is None:
            print("No session found, please provide a session_id.")
            sys.exit(1)
        session_id = snapshot.session_id

    sink_kw = {"backend": storage} if storage is not None else {}
    sink = get_result_sink(config_dir, **sink_kw)
    try:
        cleared = clear_session_results(
            sink, session_id, confirm=(lambda msg: True) if yes else ask_confirmation
        )
    except SinkError as err:
        logger.error(f"Failed to clear results: {err}")
        print("Failed to clear results. Please try again.")
        sys.exit(1)
    finally:
        sink.close()

    if cleared:
        print("Results cleared from database successfully.")


def clear_all(config_dir: str = "./configs", storage: str | None = None, yes: bool = False):
    """Delete the results of ALL sessions from the result storage"""
    config_dir = Path(config_dir)
    sink_kw = {"backend": storage} if storage is not None else {}
    sink = get_result_sink(config_dir, **sink_kw)
    try:
        cleared = clear_all_results(
            sink, confirm=(lambda msg: True) if yes else ask_confirmation
        )
    except SinkError as err:
        logger.error(f"Failed to clear results: {err}")
        print("Failed to clear results. Please try again.")
        sys.exit(1)
    finally:
        sink.close()

    if cleared:
        print("All results cleared from database successfully.")


def forget_session(config_dir: str = "./configs"):
    """Remove the locally stored snapshot of the last session"""
    ctx = load_context(Path(config_dir))
    clear_snapshot(ctx.snapshot_file)


if __name__ == "__main__":
    Fire(
        {
            "run": run_paradigm,
            "summary": show_summary,
            "report": write_session_report,
            "clear_session": clear_session,
            "clear_all": clear_all,
            "forget": forget_session,
        }
    )
