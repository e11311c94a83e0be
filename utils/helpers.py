from datetime import datetime


def format_duration(milliseconds: int) -> str:
    if milliseconds < 1000:
        return f"{milliseconds}ms"
    elif milliseconds < 60000:
        return f"{milliseconds / 1000:.2f}s"
    else:
        minutes = milliseconds // 60000
        seconds = (milliseconds % 60000) / 1000
        return f"{minutes}m {seconds:.1f}s"


def format_row_count(count: int, truncated: bool = False) -> str:
    row_word = "row" if count == 1 else "rows"
    text = f"{count} {row_word}"
    if truncated:
        text += " (truncated)"
    return text


def get_timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")
