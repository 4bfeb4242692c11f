"""
Feed data model.

Normalized entries and the snapshot returned by a single feed fetch.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FeedEntry:
    """
    Normalized RSS/Atom entry.

    Attributes
    ----------
    title : str
        Entry title.
    link : str
        Entry URL.
    marker : str
        Opaque update marker used to detect a changed head entry.
    """

    title: str = ""
    link: str = ""
    marker: str = ""

    @classmethod
    def from_feedparser(cls, entry: Any) -> "FeedEntry":
        """
        Create a FeedEntry from a feedparser entry.

        The marker is the entry's ``updated`` value, falling back to
        ``published`` and then to the entry id when a feed omits it.

        Parameters
        ----------
        entry : Any
            A feedparser entry object.

        Returns
        -------
        FeedEntry
            Normalized entry instance.
        """
        marker = entry.get("updated") or entry.get("published") or entry.get("id") or ""

        return cls(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            marker=marker,
        )


@dataclass
class FeedSnapshot:
    """
    Parsed result of one feed fetch.

    Attributes
    ----------
    url : str
        URL the feed was fetched from.
    entries : list[FeedEntry]
        Entries in document order.
    """

    url: str
    entries: list[FeedEntry] = field(default_factory=list)

    @property
    def latest(self) -> FeedEntry | None:
        """First entry of the feed, assumed to be the most recent one."""
        return self.entries[0] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)
