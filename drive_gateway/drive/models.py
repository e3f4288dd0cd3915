"""
Value types returned by the Drive client.
"""

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class FileEntry:
    """A file or folder inside a listed folder."""
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "FileEntry":
        return cls(id=data.get("id", ""), name=data.get("name", ""))


@dataclass(frozen=True)
class FolderListing:
    """
    All entries of one folder, sorted by name.

    Fully materialized: every page has been fetched before this exists.
    """
    folder_id: str
    entries: tuple[FileEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def to_list(self) -> list[dict]:
        """Serialize as an ordered array of {id, name}."""
        return [e.to_dict() for e in self.entries]


@dataclass(frozen=True)
class FileMetadata:
    """Selected attributes of a remote file (whatever the field mask asked for)."""
    id: str
    name: str
    mime_type: str = ""
    web_view_link: Optional[str] = None
    web_content_link: Optional[str] = None
    size: Optional[int] = None

    def to_dict(self) -> dict:
        d = {"id": self.id, "name": self.name, "mimeType": self.mime_type}
        if self.web_view_link:
            d["webViewLink"] = self.web_view_link
        if self.web_content_link:
            d["webContentLink"] = self.web_content_link
        if self.size is not None:
            d["size"] = self.size
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "FileMetadata":
        # Drive returns int64 fields like size as strings
        size = data.get("size")
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            web_view_link=data.get("webViewLink"),
            web_content_link=data.get("webContentLink"),
            size=int(size) if size is not None else None,
        )
