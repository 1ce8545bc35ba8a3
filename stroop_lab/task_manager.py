from functools import partial

import pyglet

from stroop_lab.context import ExperimentContext
from stroop_lab.results import summarize, summary_text
from stroop_lab.storage import PersistenceWorker
from stroop_lab.utils.logging import logger


def hex_to_rgba(color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    """Convert `#rrggbb` to an rgba tuple as used by pyglet labels"""
    color = color.lstrip("#")
    return (int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16), alpha)


class StroopTaskStateManager:
    """
    A state manager for the Stroop task providing callbacks for the state
    transitions:

        instructions -> stimulus -> blank -> stimulus -> ... -> results

    The session itself is owned by the manager and advanced by the key press
    handler. The stimulus onset is taken in the draw callback, once the
    stimulus is actually painted.
    """

    def __init__(
        self,
        ctx: ExperimentContext,
        window: "pyglet.window.BaseWindow",
        worker: PersistenceWorker | None = None,
    ):
        self.ctx = ctx
        self.window = window
        self.session = ctx.new_session(worker=worker)

        self.current_state: str = "instructions"
        self.current_stimuli: list = []  # what is drawn in on_draw
        self.onset_pending: bool = False

    # ------------------------------------------------------------------------
    # helpers for the labels
    # ------------------------------------------------------------------------
    def _label(self, text: str, y: int, color: str | None = None, **kwargs):
        kw = dict(
            font_size=self.ctx.instruction_font_size,
            x=self.window.width // 2,
            y=y,
            anchor_x="center",
            anchor_y="center",
        )
        kw.update(**kwargs)
        return pyglet.text.Label(
            text=text, color=hex_to_rgba(color or self.ctx.text_color), **kw
        )

    def _text_block(self, text: str, y: int):
        return self._label(
            text,
            y=y,
            width=int(self.window.width * 0.8),
            multiline=True,
            align="center",
        )

    # ------------------------------------------------------------------------
    # states
    # ------------------------------------------------------------------------
    def start_block(self):
        logger.debug("Showing instructions")
        self.current_state = "instructions"
        msgs = self.ctx.msgs
        self.current_stimuli = [
            self._text_block(
                msgs.get("instruction_headline", ""), y=self.window.height // 3 * 2
            ),
            self._text_block(
                msgs.get("response_keys", ""), y=self.window.height // 2
            ),
            self._text_block(
                msgs.get("instruction_footer", ""), y=self.window.height // 6
            ),
        ]

    def start_session(self):
        self.session.start()
        self.show_stimulus()

    def show_stimulus(self):
        trial = self.session.current_trial
        if trial is None:
            return

        n, total = self.session.progress
        logger.debug(f"Showing stimulus {n}/{total}: {trial}")
        self.current_state = "stimulus"
        self.current_stimuli = [
            self._label(
                trial.word_text.upper(),
                y=self.window.height // 2,
                color=trial.font_color,
                font_size=self.ctx.font_size,
            ),
            self._label(f"{n} / {total}", y=self.window.height - 40),
            self._label(self.ctx.msgs.get("color_reminder", ""), y=40),
        ]
        self.onset_pending = True

    def show_blank(self):
        self.current_state = "blank"
        self.current_stimuli = []
        self.onset_pending = False

    def show_results(self):
        logger.debug("Showing results")
        self.current_state = "results"
        summary = summarize(self.session.results, catalog=self.ctx.catalog)
        logger.info(f"Summary: {summary}")
        self.current_stimuli = [
            self._label(
                self.ctx.msgs.get("results_headline", "Results"),
                y=self.window.height // 6 * 5,
                font_size=self.ctx.instruction_font_size * 2,
            ),
            self._text_block(
                summary_text(summary, self.ctx.msgs), y=self.window.height // 2
            ),
            self._text_block(
                self.ctx.msgs.get("results_footer", ""), y=self.window.height // 8
            ),
        ]

    def restart(self):
        pyglet.clock.unschedule(self._next_after_blank)
        self.session.restart()
        self.start_session()

    # ------------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------------
    def handle_response(self, category: str):
        result = self.session.record_response(category)
        if result is None:
            return

        self.show_blank()
        pyglet.clock.schedule_once(self._next_after_blank, self.ctx.inter_trial_delay_s)

    def _next_after_blank(self, dt: float):
        if self.session.is_finished:
            self.show_results()
        else:
            self.show_stimulus()

    def on_stimulus_painted(self):
        if self.onset_pending:
            self.session.mark_stimulus_onset()
            self.onset_pending = False


# ----------------------------------------------------------------------------
#                      Handlers
# ----------------------------------------------------------------------------
def on_draw(smgr: StroopTaskStateManager):
    smgr.window.clear()
    for stim in smgr.current_stimuli:
        stim.draw()

    # take the onset with the first frame showing the stimulus
    smgr.on_stimulus_painted()


def on_key_press_handler(symbol, modifiers, smgr: StroopTaskStateManager):
    key = pyglet.window.key.symbol_string(symbol).lower()

    match smgr.current_state:
        case "instructions":
            if symbol == pyglet.window.key.SPACE:
                logger.info("User finished instructions")
                smgr.start_session()
                return True

        case "stimulus":
            category = smgr.ctx.catalog.category_for_key(key)
            if category is not None:
                logger.debug(f"{key=} pressed -> {category.name}")
                smgr.handle_response(category.name)
                return True

        case "results":
            if symbol == pyglet.window.key.R:
                logger.info("User restarts")
                smgr.restart()
                return True

    # restart at any time
    if symbol == pyglet.window.key.BACKSPACE and smgr.current_state != "instructions":
        logger.info("User restarts")
        smgr.restart()
        return True


def on_escape_exit_handler(symbol, modifiers, smgr: StroopTaskStateManager):
    if symbol == pyglet.window.key.ESCAPE:
        logger.debug("Escape key pressed")
        smgr.window.close()
        return True


def attach_handlers(smgr: StroopTaskStateManager):
    smgr.window.push_handlers(
        on_draw=partial(on_draw, smgr=smgr),
        on_key_press=partial(on_escape_exit_handler, smgr=smgr),
    )
    smgr.window.push_handlers(on_key_press=partial(on_key_press_handler, smgr=smgr))
