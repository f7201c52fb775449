"""
ASCII charts for training-load visualization.

Creates terminal-friendly bar charts of the weekly load trend and of
per-muscle weekly volume.
"""

from .models import WeeklyLoad


def create_simple_bar_chart(
    labels: list[str],
    values: list[float],
    width: int = 40,
    title: str = "",
) -> str:
    """
    Create a simple horizontal bar chart.

    Args:
        labels: Labels for each bar
        values: Values for each bar
        width: Maximum bar width
        title: Chart title

    Returns:
        ASCII bar chart string
    """
    if not values:
        return "No data to display."

    max_val = max(values)
    max_label_len = max(len(label) for label in labels) if labels else 0

    lines = []

    if title:
        lines.append(title)
        lines.append("─" * (max_label_len + width + 5))

    for label, value in zip(labels, values):
        bar_len = int((value / max_val) * width) if max_val > 0 else 0
        lines.append(f"{label:>{max_label_len}} │{'█' * bar_len} {value:.1f}")

    return "\n".join(lines)


def create_weekly_load_chart(trend: tuple[WeeklyLoad, ...] | list[WeeklyLoad], width: int = 40) -> str:
    """Bar chart of a training-load weekly trend, oldest week on top."""
    return create_simple_bar_chart(
        [w.week for w in trend],
        [w.load for w in trend],
        width=width,
        title="Weekly training load",
    )


def create_muscle_volume_chart(volume: dict[str, float], width: int = 40, title: str = "") -> str:
    """Bar chart of tonnage per muscle, largest first."""
    ordered = sorted(volume.items(), key=lambda kv: kv[1], reverse=True)
    return create_simple_bar_chart(
        [muscle for muscle, _ in ordered],
        [value for _, value in ordered],
        width=width,
        title=title,
    )
