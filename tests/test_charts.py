"""Tests for the overview charts."""

from datetime import date

import plotly.graph_objects as go
import plotly.io as pio

from trackit import charts
from trackit.analytics import aggregation


def test_charts_from_summary(food, food_expenses):
    summary = aggregation.build_summary(food_expenses, [food], today=date(2024, 1, 2))

    activity = charts.plot_activity(summary.activity)
    assert isinstance(activity, go.Figure)
    assert list(activity.data[0].x) == [p.label for p in summary.activity]

    donut = charts.plot_category_donut(summary.spending_by_category)
    assert list(donut.data[0].values) == [570]
    assert list(donut.data[0].marker.colors) == ["#f00"]

    bars = charts.plot_budget_bars(summary.top_budget_performance)
    assert list(bars.data[0].x) == [100]


def test_empty_inputs_give_placeholder_figures():
    for figure in (
        charts.plot_activity([]),
        charts.plot_category_donut([]),
        charts.plot_budget_bars([]),
    ):
        assert isinstance(figure, go.Figure)
        assert len(figure.data) == 0
        assert len(figure.layout.annotations) == 1


def test_dark_mode_template():
    dark = charts.plot_category_donut([], dark_mode=True)
    light = charts.plot_category_donut([])
    expected = pio.templates["plotly_dark"].layout.paper_bgcolor
    assert dark.layout.template.layout.paper_bgcolor == expected
    assert light.layout.template.layout.paper_bgcolor != expected


def test_swatch_escapes_category_name():
    snippet = charts.swatch_html("#f00", "<img src=x onerror=alert(1)>")
    assert "<img" not in snippet
    assert "&lt;img src=x onerror=alert(1)&gt;" in snippet
    assert snippet.startswith('<span style="color:#f00">')


def test_advice_html_escapes_and_keeps_line_breaks():
    snippet = charts.advice_html("1. Eat in\n2. <b>Save</b> & invest")
    assert snippet == "1. Eat in<br>2. &lt;b&gt;Save&lt;/b&gt; &amp; invest"
