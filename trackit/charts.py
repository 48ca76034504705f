"""Plotly figures and small HTML snippets for the dashboard."""

import html
from collections.abc import Sequence

import plotly.graph_objects as go

from trackit.models.finance import ActivityPoint, BudgetPerformance, CategorySpend


ACCENT_COLOR = "#6366f1"


def _template(dark_mode: bool) -> str:
    return "plotly_dark" if dark_mode else "plotly_white"


def _empty_figure(message: str, dark_mode: bool = False) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_layout(
        template=_template(dark_mode),
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        margin=dict(l=0, r=0, t=20, b=20),
    )
    return fig


def plot_activity(points: Sequence[ActivityPoint], dark_mode: bool = False) -> go.Figure:
    """Filled area chart of daily spend over the activity window."""
    if not points:
        return _empty_figure("No activity to display.", dark_mode)

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=[p.label for p in points],
            y=[p.amount for p in points],
            customdata=[p.date for p in points],
            mode="lines",
            fill="tozeroy",
            line=dict(color=ACCENT_COLOR, width=2, shape="spline"),
            hovertemplate="%{customdata}<br>$%{y:.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        template=_template(dark_mode),
        title="Activity",
        yaxis_title="Amount",
        margin=dict(l=0, r=0, t=40, b=0),
        showlegend=False,
    )
    return fig


def plot_category_donut(
    breakdown: Sequence[CategorySpend],
    dark_mode: bool = False,
) -> go.Figure:
    """Donut of spend per category, in each category's own color."""
    if not breakdown:
        return _empty_figure("No spending yet.", dark_mode)

    fig = go.Figure(
        go.Pie(
            labels=[c.name for c in breakdown],
            values=[c.value for c in breakdown],
            marker=dict(colors=[c.color for c in breakdown]),
            hole=0.55,
            sort=False,
        )
    )
    fig.update_traces(textinfo="label+percent", pull=[0.03] * len(breakdown))
    fig.update_layout(
        template=_template(dark_mode),
        title="Spending by category",
        margin=dict(l=0, r=0, t=40, b=0),
    )
    return fig


def plot_budget_bars(
    performance: Sequence[BudgetPerformance],
    dark_mode: bool = False,
) -> go.Figure:
    """Horizontal bars of budget use, capped at 100%."""
    if not performance:
        return _empty_figure("No categories yet.", dark_mode)

    rows = list(reversed(performance))
    fig = go.Figure(
        go.Bar(
            x=[p.percentage for p in rows],
            y=[p.name for p in rows],
            orientation="h",
            marker_color=[p.color for p in rows],
            text=[f"${p.spent:,.2f} / ${p.budget:,.2f}" for p in rows],
            textposition="auto",
        )
    )
    fig.update_layout(
        template=_template(dark_mode),
        title="Budget performance",
        xaxis=dict(range=[0, 100], ticksuffix="%"),
        margin=dict(l=0, r=0, t=40, b=0),
        showlegend=False,
    )
    return fig


# HTML snippets. User text is escaped before it reaches unsafe_allow_html.

def swatch_html(color: str, label: str) -> str:
    """A coloured dot followed by a label."""
    return f'<span style="color:{html.escape(color)}">●</span> {html.escape(label)}'


def advice_html(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")
