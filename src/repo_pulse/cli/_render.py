"""Text rendering helpers: sparklines, heatmap grid, number formatting."""

from __future__ import annotations

from typing import Sequence

import numpy as np

SPARK_BARS = "▁▂▃▄▅▆▇█"
HEAT_COLORS = ["grey39", "blue", "green", "yellow", "red"]
WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def format_number(n: int) -> str:
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)


def sparkline(values: Sequence[int]) -> str:
    if not values:
        return ""
    low, high = min(values), max(values)
    if high == low:
        return SPARK_BARS[len(SPARK_BARS) // 2] * len(values)
    scale = (len(SPARK_BARS) - 1) / (high - low)
    return "".join(SPARK_BARS[min(int((v - low) * scale), len(SPARK_BARS) - 1)] for v in values)


def sparkline_with_width(values: Sequence[int], width: int) -> str:
    """Sparkline downsampled by bucket averaging to at most ``width`` columns."""
    if not values or width <= 0:
        return ""
    if len(values) <= width:
        return sparkline(values)

    bucket = len(values) / width
    scaled = []
    for i in range(width):
        start = int(i * bucket)
        end = min(int((i + 1) * bucket), len(values))
        scaled.append(sum(values[start:end]) // (end - start) if end > start else 0)
    return sparkline(scaled)


def heat_color(value: int, max_value: int) -> str:
    if max_value <= 0 or value <= 0:
        return HEAT_COLORS[0]
    intensity = min(value * (len(HEAT_COLORS) - 1) // max_value, len(HEAT_COLORS) - 1)
    return HEAT_COLORS[intensity]


def heatmap_grid(matrix: np.ndarray, max_value: int) -> str:
    """Rich-markup weekday x hour grid."""
    lines = ["      " + "".join(f"{h:02d} " if h % 3 == 0 else "   " for h in range(0, 24))]
    for day, label in enumerate(WEEKDAYS):
        cells = "".join(
            f"[{heat_color(int(matrix[day, hour]), max_value)}]██[/] " for hour in range(24)
        )
        lines.append(f"[yellow]{label:<5}[/] {cells}")
    legend = "".join(f"[{color}]██[/]" for color in HEAT_COLORS)
    lines.append("")
    lines.append(f"      [dim]Low[/] {legend} [red]High[/]")
    return "\n".join(lines)


def risk_bar(score: float) -> str:
    filled = min(int(score / 20), 5)
    return "█" * filled + "░" * (5 - filled)


def risk_style(score: float) -> str:
    if score >= 70:
        return "red"
    if score >= 50:
        return "dark_orange"
    if score >= 30:
        return "yellow"
    return "green"
