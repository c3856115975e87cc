"""Lookup object over the bundled llms.txt registry data."""

from collections.abc import Iterable
from importlib.resources import files
from pathlib import Path

import structlog
from pydantic import TypeAdapter, ValidationError

from llxt.registry.errors import RegistryError, RegistryErrorClass
from llxt.registry.models import DirectoryEntry, RegistryEntry, WebsiteEntry


logger = structlog.get_logger()

DIRECTORY_ENTRIES_FILE = "directory_entries.json"
WEBSITES_FILE = "websites.json"
NOT_FOUND_HINT = "Use 'llxt list' to see available sources"

_directory_adapter = TypeAdapter(list[DirectoryEntry])
_website_adapter = TypeAdapter(list[WebsiteEntry])


def slugify(name: str) -> str:
    """Derive a registry key from a display name.

    Args:
        name: Display name (e.g., 'Vercel AI SDK').

    Returns:
        Lowercase key with spaces replaced by hyphens.
    """
    return name.strip().lower().replace(" ", "-")


class Registry:
    """Explicitly constructed name -> URL lookup.

    Build one with from_bundled() or from_files() and pass it to whoever
    needs it; there is no module-level instance.
    """

    def __init__(self, entries: Iterable[RegistryEntry] = ()) -> None:
        """Initialize the registry.

        Args:
            entries: Entries to index by lowercase key.
        """
        self._entries: dict[str, RegistryEntry] = {
            entry.key.lower(): entry for entry in entries
        }

    @classmethod
    def from_json(cls, directory_json: bytes, websites_json: bytes) -> "Registry":
        """Build a registry from the two JSON documents.

        Directory entries are keyed by their key. Website entries are keyed
        by slugified name and only contribute description and category when
        the key already exists.

        Args:
            directory_json: Contents of directory_entries.json.
            websites_json: Contents of websites.json.

        Returns:
            Populated registry.

        Raises:
            RegistryError: If either document is invalid.
        """
        try:
            directory = _directory_adapter.validate_json(directory_json)
            websites = _website_adapter.validate_json(websites_json)
        except ValidationError as e:
            raise RegistryError(
                RegistryErrorClass.INVALID_DATA,
                f"Invalid registry data: {e.error_count()} validation errors",
            ) from e

        entries: dict[str, RegistryEntry] = {}
        for row in directory:
            entry = row.to_entry()
            entries[entry.key] = entry

        for site in websites:
            key = slugify(site.name)
            existing = entries.get(key)
            if existing is None:
                entries[key] = site.to_entry(key)
            else:
                entries[key] = existing.model_copy(
                    update={
                        "description": site.description,
                        "category": site.category,
                    }
                )

        logger.debug(
            "registry_loaded",
            component="registry",
            directory_entries=len(directory),
            website_entries=len(websites),
            total=len(entries),
        )
        return cls(entries.values())

    @classmethod
    def from_files(cls, directory_path: Path, websites_path: Path) -> "Registry":
        """Build a registry from JSON files on disk."""
        return cls.from_json(directory_path.read_bytes(), websites_path.read_bytes())

    @classmethod
    def from_bundled(cls) -> "Registry":
        """Build a registry from the data shipped with the package."""
        data = files("llxt.registry").joinpath("data")
        return cls.from_json(
            data.joinpath(DIRECTORY_ENTRIES_FILE).read_bytes(),
            data.joinpath(WEBSITES_FILE).read_bytes(),
        )

    def lookup(self, key: str) -> RegistryEntry:
        """Find an entry by key (case-insensitive).

        Args:
            key: Registry key.

        Returns:
            Matching entry.

        Raises:
            RegistryError: If no entry matches.
        """
        entry = self._entries.get(key.strip().lower())
        if entry is None:
            raise RegistryError(
                RegistryErrorClass.NOT_FOUND,
                f"Source {key!r} not found in registry",
                key=key,
                hint=NOT_FOUND_HINT,
            )
        return entry

    def list_entries(self) -> list[RegistryEntry]:
        """Return all entries sorted by key."""
        return [self._entries[key] for key in self.keys()]

    def list_by_category(self, category: str) -> list[RegistryEntry]:
        """Return entries in a category (case-insensitive), sorted by key."""
        wanted = category.lower()
        return [
            entry for entry in self.list_entries() if entry.category.lower() == wanted
        ]

    def keys(self) -> list[str]:
        """Return all keys sorted."""
        return sorted(self._entries)

    def count(self) -> int:
        """Return the number of entries."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._entries
