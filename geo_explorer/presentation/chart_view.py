from typing import List, Optional

from pydantic import BaseModel

from geo_explorer.models import ChartData

TICK_INTERVALS = 5


class ChartBar(BaseModel):
    label: str
    value: float
    # Bar height as a fraction of the value domain (0..1)
    height_fraction: float


class ChartTick(BaseModel):
    value: float
    label: str


class BarChartView(BaseModel):
    title: str
    x_axis_label: Optional[str] = None
    y_axis_label: Optional[str] = None
    domain_min: float
    domain_max: float
    bars: List[ChartBar]
    ticks: List[ChartTick]


def _two_significant_digits(value: float) -> float:
    return float(f"{value:.2g}")


def format_tick(value: float) -> str:
    """Format an axis tick with B/M/K suffixes (one decimal)."""
    if value >= 1e9:
        return f"{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{value / 1e6:.1f}M"
    if value >= 1e3:
        return f"{value / 1e3:.1f}K"
    return f"{value:g}"


def build_bar_chart(chart: ChartData) -> Optional[BarChartView]:
    """
    Build the bar chart view for knowledge chart data.

    Bars keep the supplied order. The value domain runs from
    ``min(0, min(values))`` to ``max(values)``, so it starts at zero when
    every value is positive. Returns None for a chart without data points.
    """
    if not chart.data:
        return None

    values = [point.value for point in chart.data]
    domain_max = max(values)
    domain_min = min(0.0, min(values))
    span = domain_max - domain_min

    bars = [
        ChartBar(
            label=point.label,
            value=point.value,
            height_fraction=(point.value - domain_min) / span if span else 0.0,
        )
        for point in chart.data
    ]

    ticks = []
    for i in range(TICK_INTERVALS + 1):
        tick_value = _two_significant_digits(domain_min + (i / TICK_INTERVALS) * span)
        ticks.append(ChartTick(value=tick_value, label=format_tick(tick_value)))

    return BarChartView(
        title=chart.title,
        x_axis_label=chart.x_axis_label,
        y_axis_label=chart.y_axis_label,
        domain_min=domain_min,
        domain_max=domain_max,
        bars=bars,
        ticks=ticks,
    )
