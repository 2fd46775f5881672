"""
Saved Fitting Storage.

Stores each fitting as its own JSON document, {directory}/{fitting_id}.json,
alongside an index.json summarising every saved fitting:

    {
        "fittings": {
            "<fitting_id>": {
                "name": str,
                "ship_type_id": int,
                "ship_name": str,
                "updated_at": str
            }
        },
        "metadata": {"last_updated": str, "count": int}
    }
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional

from ..core.config import get_settings
from ..core.logging import get_logger
from ..models.fitting import Fitting, utc_now_iso

logger = get_logger(__name__)

INDEX_FILENAME = "index.json"

# Fitting ids become file names
FITTING_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class FittingRepository:
    """JSON file repository for saved fittings."""

    def __init__(self, directory: Optional[Path] = None):
        """
        Initialize the repository.

        Args:
            directory: Storage directory (default: settings.fittings_dir)
        """
        self.directory = Path(directory) if directory is not None else get_settings().fittings_dir

    @property
    def index_path(self) -> Path:
        return self.directory / INDEX_FILENAME

    def _path(self, fitting_id: str) -> Path:
        if not FITTING_ID_PATTERN.match(fitting_id):
            raise ValueError(f"Invalid fitting id: {fitting_id!r}")
        return self.directory / f"{fitting_id}.json"

    def _read_index(self) -> dict[str, Any]:
        if not self.index_path.exists():
            return {"fittings": {}, "metadata": {}}
        try:
            with open(self.index_path, encoding="utf-8") as f:
                index = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read fitting index, rebuilding: %s", e)
            return {"fittings": {}, "metadata": {}}
        index.setdefault("fittings", {})
        return index

    def _write_index(self, index: dict[str, Any]) -> None:
        index["metadata"] = {"last_updated": utc_now_iso(), "count": len(index["fittings"])}
        with open(self.index_path, "w", encoding="utf-8") as f:
            json.dump(index, f, indent=2)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def save(self, fitting: Fitting) -> Path:
        """
        Write a fitting and update the index.

        Returns:
            Path of the written document
        """
        path = self._path(fitting.id)
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(fitting.to_dict(), f, indent=2)

        index = self._read_index()
        index["fittings"][fitting.id] = {
            "name": fitting.name,
            "ship_type_id": fitting.ship_type_id,
            "ship_name": fitting.ship_name,
            "updated_at": fitting.updated_at,
        }
        self._write_index(index)
        logger.debug("Saved fitting %s (%s) to %s", fitting.id, fitting.name, path)
        return path

    def load(self, fitting_id: str) -> Fitting:
        """
        Read a saved fitting.

        Raises:
            KeyError: If no document exists for fitting_id
            ValueError: If the document is not a valid fitting
        """
        path = self._path(fitting_id)
        if not path.exists():
            raise KeyError(fitting_id)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return Fitting.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Corrupt fitting document {path.name}: {e}") from e

    def delete(self, fitting_id: str) -> bool:
        """
        Remove a fitting and its index entry.

        Returns:
            True if a document was deleted
        """
        path = self._path(fitting_id)
        existed = path.exists()
        if existed:
            path.unlink()

        index = self._read_index()
        if index["fittings"].pop(fitting_id, None) is not None or existed:
            self._write_index(index)
        return existed

    def list_ids(self) -> list[str]:
        """Ids of saved fittings, from the index."""
        return list(self._read_index()["fittings"])

    def load_all(self) -> list[Fitting]:
        """Load every indexed fitting, skipping missing or corrupt documents."""
        fittings: list[Fitting] = []
        for fitting_id in self.list_ids():
            try:
                fittings.append(self.load(fitting_id))
            except KeyError:
                logger.warning("Indexed fitting %s has no document, skipping", fitting_id)
            except ValueError as e:
                logger.warning("Skipping fitting %s: %s", fitting_id, e)
        return fittings
