from datetime import UTC, date, datetime


def now() -> datetime:
    return datetime.now(UTC)


def today() -> date:
    """Current date on the process-local clock."""
    return datetime.now().date()  # noqa: DTZ005
