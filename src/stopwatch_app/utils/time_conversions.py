MS_PER_HOUR = 3_600_000
MS_PER_MINUTE = 60_000
MS_PER_SECOND = 1_000


def split_milliseconds(total_ms: int) -> tuple[int, int, int, int]:
    """
    Splits a millisecond count into (hours, minutes, seconds, centiseconds).

    Only integer division and modulo are used so that no floating-point
    rounding can leak into the displayed value. Negative input is clamped to 0.
    """
    total_ms = max(int(total_ms), 0)

    hours = total_ms // MS_PER_HOUR
    minutes = (total_ms % MS_PER_HOUR) // MS_PER_MINUTE
    seconds = (total_ms % MS_PER_MINUTE) // MS_PER_SECOND
    centiseconds = (total_ms % MS_PER_SECOND) // 10
    return hours, minutes, seconds, centiseconds


def format_duration(total_ms: int, include_centiseconds: bool = True) -> str:
    """
    Converts a millisecond count into ``HH:MM:SS.mm`` (or ``HH:MM:SS``).

    Args:
        total_ms (int): Elapsed milliseconds.
        include_centiseconds (bool): Append the two-digit ``.mm`` part.

    Returns:
        str: The formatted duration. Hours are not wrapped at 24.
    """
    hours, minutes, seconds, centiseconds = split_milliseconds(total_ms)
    formatted = f"{hours:02}:{minutes:02}:{seconds:02}"
    if include_centiseconds:
        formatted += f".{centiseconds:02}"
    return formatted
