"""Data models for the bundled llms.txt registry."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class RegistryEntry(BaseModel):
    """Unified registry entry: a short key mapped to one or two document URLs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: Annotated[str, Field(min_length=1)]
    name: Annotated[str, Field(min_length=1)]
    domain: str = ""
    description: str = ""
    category: str = ""
    llms_url: Annotated[str, Field(min_length=1)]
    llms_full_url: str | None = None


class DirectoryEntry(BaseModel):
    """Row of directory_entries.json."""

    model_config = ConfigDict(extra="ignore")

    key: Annotated[str, Field(min_length=1)]
    name: Annotated[str, Field(min_length=1)]
    domain: str = ""
    llms_url: Annotated[str, Field(min_length=1)]
    llms_full_url: str | None = None

    def to_entry(self) -> RegistryEntry:
        """Convert to a registry entry."""
        return RegistryEntry(
            key=self.key.lower(),
            name=self.name,
            domain=self.domain,
            llms_url=self.llms_url,
            llms_full_url=self.llms_full_url,
        )


class WebsiteEntry(BaseModel):
    """Row of websites.json (camelCase URL fields)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Annotated[str, Field(min_length=1)]
    domain: str = ""
    description: str = ""
    category: str = ""
    llms_txt_url: Annotated[str, Field(min_length=1, alias="llmsTxtUrl")]
    llms_full_txt_url: str | None = Field(default=None, alias="llmsFullTxtUrl")

    def to_entry(self, key: str) -> RegistryEntry:
        """Convert to a registry entry stored under key."""
        return RegistryEntry(
            key=key,
            name=self.name,
            domain=self.domain,
            description=self.description,
            category=self.category,
            llms_url=self.llms_txt_url,
            llms_full_url=self.llms_full_txt_url,
        )
