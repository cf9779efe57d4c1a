from __future__ import annotations


def _hours_minutes(seconds: float) -> tuple[int, int]:
    whole = int(seconds)
    return whole // 3600, (whole % 3600) // 60


def format_time_remaining(seconds: float) -> str:
    if seconds <= 0:
        return "Overtime"
    hours, minutes = _hours_minutes(seconds)
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    return f"{minutes}m remaining"


def format_time_until_start(seconds: float) -> str:
    if seconds <= 0:
        return "Starting now"
    hours, minutes = _hours_minutes(seconds)
    if hours > 0:
        return f"Starts in {hours}h {minutes}m"
    return f"Starts in {minutes}m"
