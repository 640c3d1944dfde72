"""Display helpers for route summaries."""


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{int(round(meters))} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    minutes = int(round(seconds / 60))
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    return f"{hours} h {remaining} min"


def safety_level(safety_score: int) -> str:
    """'safe' (>= 80), 'warning' (>= 50) or 'danger'."""
    if safety_score >= 80:
        return "safe"
    if safety_score >= 50:
        return "warning"
    return "danger"
