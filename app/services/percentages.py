def compute_percentage(total: float, grand_total: float) -> float:
    """Share of `grand_total`, rounded to 2 decimals; 0 when there is nothing to share."""
    if not grand_total:
        return 0
    return round(total / grand_total * 100, 2)


def format_percentage(total: float, grand_total: float) -> str:
    """Share of `grand_total` as a display string, e.g. "60.00%" (or "0%")."""
    if not grand_total:
        return "0%"
    return f"{total / grand_total * 100:.2f}%"


def average(total: float, count: int) -> float:
    if not count:
        return 0
    return round(total / count, 2)
