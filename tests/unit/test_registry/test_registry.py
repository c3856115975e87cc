"""Unit tests for the llms.txt registry."""

import json
from pathlib import Path

import pytest

from llxt.registry import Registry, RegistryEntry, RegistryError, RegistryErrorClass
from llxt.registry.registry import slugify


def to_json(rows: list[dict[str, object]]) -> bytes:
    """Serialize fixture rows."""
    return json.dumps(rows).encode()


DIRECTORY_ROWS: list[dict[str, object]] = [
    {
        "key": "Hono",
        "name": "Hono",
        "domain": "hono.dev",
        "llms_url": "https://hono.dev/llms.txt",
        "llms_full_url": "https://hono.dev/llms-full.txt",
    },
    {
        "key": "stripe",
        "name": "Stripe",
        "domain": "docs.stripe.com",
        "llms_url": "https://docs.stripe.com/llms.txt",
        "llms_full_url": None,
    },
]

WEBSITE_ROWS: list[dict[str, object]] = [
    {
        "name": "Hono",
        "domain": "hono.dev",
        "description": "Web framework",
        "llmsTxtUrl": "https://example.com/ignored.txt",
        "category": "backend",
    },
    {
        "name": "Vercel AI SDK",
        "domain": "sdk.vercel.ai",
        "description": "AI toolkit",
        "llmsTxtUrl": "https://sdk.vercel.ai/llms.txt",
        "category": "ai",
    },
]


@pytest.fixture
def registry() -> Registry:
    """Create a registry from fixture data."""
    return Registry.from_json(to_json(DIRECTORY_ROWS), to_json(WEBSITE_ROWS))


class TestSlugify:
    """Tests for key derivation."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Vercel AI SDK", "vercel-ai-sdk"),
            ("Svelte", "svelte"),
            ("  Turso ", "turso"),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        """Test lowercase hyphenated keys."""
        assert slugify(name) == expected


class TestFromJson:
    """Tests for building a registry from JSON."""

    def test_directory_keys_lowercased(self, registry: Registry) -> None:
        """Test that directory keys are normalized."""
        assert "hono" in registry.keys()

    def test_website_merges_metadata_only(self, registry: Registry) -> None:
        """Test that an existing key gains description and category only."""
        entry = registry.lookup("hono")

        assert entry.description == "Web framework"
        assert entry.category == "backend"
        assert entry.llms_url == "https://hono.dev/llms.txt"
        assert entry.llms_full_url == "https://hono.dev/llms-full.txt"

    def test_website_adds_new_entry(self, registry: Registry) -> None:
        """Test that unknown websites become entries keyed by slug."""
        entry = registry.lookup("vercel-ai-sdk")

        assert entry.name == "Vercel AI SDK"
        assert entry.llms_url == "https://sdk.vercel.ai/llms.txt"
        assert entry.llms_full_url is None

    def test_invalid_data(self) -> None:
        """Test that malformed data raises INVALID_DATA."""
        with pytest.raises(RegistryError) as exc_info:
            Registry.from_json(to_json([{"key": "x"}]), to_json([]))

        assert exc_info.value.error_class == RegistryErrorClass.INVALID_DATA

    def test_invalid_json(self) -> None:
        """Test that non-JSON input raises INVALID_DATA."""
        with pytest.raises(RegistryError) as exc_info:
            Registry.from_json(b"not json", b"[]")

        assert exc_info.value.error_class == RegistryErrorClass.INVALID_DATA

    def test_from_files(self, tmp_path: Path) -> None:
        """Test loading the same formats from disk."""
        directory = tmp_path / "directory_entries.json"
        websites = tmp_path / "websites.json"
        directory.write_bytes(to_json(DIRECTORY_ROWS))
        websites.write_bytes(to_json([]))

        registry = Registry.from_files(directory, websites)

        assert registry.keys() == ["hono", "stripe"]


class TestLookup:
    """Tests for Registry.lookup."""

    @pytest.mark.parametrize("key", ["stripe", "STRIPE", "Stripe", " stripe "])
    def test_case_insensitive(self, registry: Registry, key: str) -> None:
        """Test that lookup ignores case and surrounding whitespace."""
        assert registry.lookup(key).key == "stripe"

    def test_not_found(self, registry: Registry) -> None:
        """Test that a miss raises NOT_FOUND with a hint."""
        with pytest.raises(RegistryError) as exc_info:
            registry.lookup("unknown-tool")

        error = exc_info.value
        assert error.error_class == RegistryErrorClass.NOT_FOUND
        assert error.key == "unknown-tool"
        assert error.hint == "Use 'llxt list' to see available sources"
        assert error.to_dict()["error_class"] == "NOT_FOUND"


class TestListing:
    """Tests for listing helpers."""

    def test_list_entries_sorted(self, registry: Registry) -> None:
        """Test that entries are returned sorted by key."""
        keys = [entry.key for entry in registry.list_entries()]

        assert keys == ["hono", "stripe", "vercel-ai-sdk"]

    def test_list_by_category(self, registry: Registry) -> None:
        """Test category filtering ignores case."""
        entries = registry.list_by_category("AI")

        assert [entry.key for entry in entries] == ["vercel-ai-sdk"]

    def test_counts(self, registry: Registry) -> None:
        """Test count and len agree."""
        assert registry.count() == 3
        assert len(registry) == 3
        assert "HONO" in registry
        assert 42 not in registry

    def test_explicit_entries(self) -> None:
        """Test direct construction from entries."""
        registry = Registry(
            [RegistryEntry(key="Demo", name="Demo", llms_url="https://d/llms.txt")]
        )

        assert registry.lookup("demo").name == "Demo"


class TestBundledRegistry:
    """Tests for the data shipped with the package."""

    def test_loads(self) -> None:
        """Test that bundled data loads and merges website metadata."""
        registry = Registry.from_bundled()

        assert registry.count() >= 10
        anthropic = registry.lookup("anthropic")
        assert anthropic.category == "ai"
        assert anthropic.llms_full_url == "https://docs.anthropic.com/llms-full.txt"

    def test_entries_without_full_url(self) -> None:
        """Test that sources without llms-full.txt have no alternate URL."""
        registry = Registry.from_bundled()

        assert registry.lookup("stripe").llms_full_url is None
