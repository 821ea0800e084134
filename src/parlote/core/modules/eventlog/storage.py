"""Daily JSON-lines files for conversation logs."""

from datetime import date
from pathlib import Path


def get_log_file_path(logs_path: str, day: date) -> Path:
    """Get path of the log file for a calendar day."""
    return Path(logs_path) / f"{day.isoformat()}.jsonl"


def append_line(file_path: Path, line: str) -> None:
    """Append a single line, creating the directory if needed."""
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")
