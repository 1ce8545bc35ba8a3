# Charts of a session's results, corresponding to the views of the results
# page: average reaction times, per word comparison, raw distribution,
# effect sizes and speed vs accuracy.

from pathlib import Path

import pandas as pd
import plotly.graph_objs as go
from plotly.subplots import make_subplots

from stroop_lab.results import ResultsSummary, TrialResult, summarize
from stroop_lab.utils.logging import logger

CONDITION_COLORS = {"congruent": "#34d399", "incongruent": "#f43f5e"}


def results_to_frame(results: list[TrialResult]) -> pd.DataFrame:
    """One row per trial, with the trial number and condition added"""
    df = pd.DataFrame(
        [r.to_dict() for r in results],
        columns=[
            "session_id",
            "word_text",
            "font_color",
            "is_congruent",
            "reaction_time_ms",
            "user_response",
            "is_correct",
        ],
    )
    df["trial"] = range(1, len(df) + 1)
    df["condition"] = df.is_congruent.map({True: "congruent", False: "incongruent"})
    return df


def speed_accuracy_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Mean RT of correct trials and accuracy [%] per word and condition"""
    rows = []
    for (word, condition), dg in df.groupby(["word_text", "condition"]):
        correct = dg[dg.is_correct]
        rows.append(
            {
                "word_text": word,
                "condition": condition,
                "n_trials": len(dg),
                "mean_rt_ms": correct.reaction_time_ms.mean() if len(correct) else None,
                "accuracy": 100 * dg.is_correct.mean(),
            }
        )
    return pd.DataFrame(
        rows, columns=["word_text", "condition", "n_trials", "mean_rt_ms", "accuracy"]
    )


def add_average_bars(fig: go.Figure, summary: ResultsSummary, row: int, col: int):
    fig.add_bar(
        x=["congruent", "incongruent"],
        y=[summary.congruent_avg, summary.incongruent_avg],
        marker_color=[CONDITION_COLORS["congruent"], CONDITION_COLORS["incongruent"]],
        name="average RT",
        showlegend=False,
        row=row,
        col=col,
    )


def add_category_bars(fig: go.Figure, summary: ResultsSummary, row: int, col: int):
    words = list(summary.by_category.keys())
    for condition in ["congruent", "incongruent"]:
        fig.add_bar(
            x=words,
            y=[
                getattr(summary.by_category[w], f"{condition}_avg") for w in words
            ],
            marker_color=CONDITION_COLORS[condition],
            name=condition,
            legendgroup=condition,
            row=row,
            col=col,
        )


def add_distribution(fig: go.Figure, df: pd.DataFrame, row: int, col: int):
    # one point per trial, errors drawn as open symbols
    for condition, dg in df.groupby("condition"):
        fig.add_scatter(
            x=dg.trial,
            y=dg.reaction_time_ms,
            mode="markers",
            marker_color=CONDITION_COLORS[condition],
            marker_symbol=["circle" if c else "circle-open" for c in dg.is_correct],
            marker_size=10,
            name=condition,
            legendgroup=condition,
            showlegend=False,
            row=row,
            col=col,
        )


def add_effect_bars(fig: go.Figure, summary: ResultsSummary, row: int, col: int):
    labels = list(summary.by_category.keys()) + ["overall"]
    values = [s.difference for s in summary.by_category.values()]
    values.append(summary.stroop_effect)
    fig.add_bar(
        x=labels,
        y=values,
        marker_color=["#60a5fa"] * (len(labels) - 1) + ["#a78bfa"],
        name="Stroop effect",
        showlegend=False,
        row=row,
        col=col,
    )


def add_speed_accuracy(fig: go.Figure, df: pd.DataFrame, row: int, col: int):
    dsa = speed_accuracy_frame(df)
    for condition, dg in dsa.groupby("condition"):
        fig.add_scatter(
            x=dg.mean_rt_ms,
            y=dg.accuracy,
            text=dg.word_text,
            mode="markers+text",
            textposition="top center",
            marker_color=CONDITION_COLORS[condition],
            marker_size=12,
            name=condition,
            legendgroup=condition,
            showlegend=False,
            row=row,
            col=col,
        )


def plot_results(
    results: list[TrialResult],
    summary: ResultsSummary | None = None,
    show: bool = False,
) -> go.Figure:
    summary = summary or summarize(results)
    df = results_to_frame(results)

    fig = make_subplots(
        rows=3,
        cols=2,
        subplot_titles=[
            "Average reaction times",
            "Reaction times per word",
            "Distribution of reaction times",
            "Stroop effect per word",
            "Speed vs accuracy",
        ],
    )

    add_average_bars(fig, summary, row=1, col=1)
    add_category_bars(fig, summary, row=1, col=2)
    add_distribution(fig, df, row=2, col=1)
    add_effect_bars(fig, summary, row=2, col=2)
    add_speed_accuracy(fig, df, row=3, col=1)

    fig = fig.update_yaxes(title_text="RT [ms]", row=1, col=1)
    fig = fig.update_yaxes(title_text="RT [ms]", row=1, col=2)
    fig = fig.update_yaxes(title_text="RT [ms]", row=2, col=1)
    fig = fig.update_xaxes(title_text="trial", row=2, col=1)
    fig = fig.update_yaxes(title_text="incongruent - congruent [ms]", row=2, col=2)
    fig = fig.update_xaxes(title_text="mean RT [ms]", row=3, col=1)
    fig = fig.update_yaxes(title_text="accuracy [%]", row=3, col=1)
    fig = fig.update_layout(barmode="group", height=1200, font_size=14)

    if show:
        fig.show()
    return fig


def write_report(results: list[TrialResult], file: Path, **kwargs) -> Path:
    file = Path(file)
    file.parent.mkdir(exist_ok=True, parents=True)
    fig = plot_results(results, **kwargs)
    fig.write_html(file)
    logger.info(f"Wrote results report to {file}")
    return file
