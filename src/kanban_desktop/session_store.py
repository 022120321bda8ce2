"""
Persistent session state: window bounds, last board URL and workspace
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

BOUNDS_KEY = "windowBounds"
LAST_URL_KEY = "lastBoardUrl"
WORKSPACE_KEY = "windowWorkspace"


@dataclass(frozen=True)
class Bounds:
    """Restorable window geometry"""

    width: int
    height: int
    x: int | None = None
    y: int | None = None

    def to_dict(self) -> dict[str, int]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_value(cls, value: Any) -> "Bounds | None":
        """Build bounds from a stored mapping; malformed values give None."""
        if not isinstance(value, dict):
            return None
        try:
            width = int(value["width"])
            height = int(value["height"])
            x = value.get("x")
            y = value.get("y")
            return cls(
                width=width,
                height=height,
                x=int(x) if x is not None else None,
                y=int(y) if y is not None else None,
            )
        except (KeyError, TypeError, ValueError):
            return None


class SessionStore:
    """Key-value store backed by a YAML file.

    Every ``set`` replaces a single key and rewrites the file atomically, so
    unrelated keys survive and a crash mid-write leaves the previous file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data = self._load()

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            return {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Error loading session state %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring session state %s: not a mapping", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key in self._data and self._data[key] == value:
            return
        self._data[key] = value
        self._write()

    def _write(self) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._data, f, default_flow_style=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.warning("Error saving session state %s: %s", self.path, e)
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    # Typed accessors ------------------------------------------------

    def bounds(self) -> Bounds | None:
        return Bounds.from_value(self.get(BOUNDS_KEY))

    def save_bounds(self, bounds: Bounds) -> None:
        self.set(BOUNDS_KEY, bounds.to_dict())

    def last_board_url(self) -> str | None:
        value = self.get(LAST_URL_KEY)
        return value if isinstance(value, str) and value else None

    def workspace(self) -> int | None:
        value = self.get(WORKSPACE_KEY)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        return value
