"""Debug capture sinks for outbound requests and inbound responses."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DebugCapture(Protocol):
    """Persists a JSON-serializable payload under a destination name."""

    async def write(self, name: str, payload: Any) -> None: ...


class DirectoryCapture:
    """Writes each payload to ``<directory>/<name>.json``.

    The directory is created on first write.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    async def write(self, name: str, payload: Any) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / f"{name}.json"
        path.write_text(
            json.dumps(payload, indent=2, default=str), encoding="utf-8"
        )
