"""File storage for the situation catalogue."""

from pathlib import Path

from pydantic import TypeAdapter

from parlote.core.modules.situation.models import Situation

_catalogue_adapter = TypeAdapter(list[Situation])


def read_situations(path: str) -> list[Situation]:
    """Read the catalogue. A missing file is an empty catalogue."""
    file_path = Path(path)
    if not file_path.exists():
        return []
    return _catalogue_adapter.validate_json(file_path.read_bytes())


def write_situations(path: str, situations: list[Situation]) -> None:
    """Write the whole catalogue back, creating the parent directory if needed."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(_catalogue_adapter.dump_json(situations, by_alias=True, exclude_none=True, indent=2))
