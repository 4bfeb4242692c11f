"""
In-memory tracking of notified feed updates.

Remembers, per feed URL, the marker of the last entry a notification
was delivered for. State lives only as long as the process.
"""

import logging

logger = logging.getLogger(__name__)


class UpdateTracker:
    """
    Mapping from feed URL to the last notified update marker.

    A feed without a recorded marker has never been notified. Only the
    poll loop reads and writes the tracker, so no locking is needed.
    """

    def __init__(self) -> None:
        self._markers: dict[str, str] = {}

    def is_new_update(self, feed_url: str, marker: str) -> bool:
        """
        Check whether ``marker`` differs from the last notified one.

        Parameters
        ----------
        feed_url : str
            URL of the feed.
        marker : str
            Update marker of the feed's current head entry.

        Returns
        -------
        bool
            True if nothing was recorded for the feed or the recorded
            marker is not exactly equal to ``marker``.
        """
        if feed_url not in self._markers:
            return True
        return self._markers[feed_url] != marker

    def record(self, feed_url: str, marker: str) -> None:
        """
        Store ``marker`` as the last notified marker of the feed.

        Parameters
        ----------
        feed_url : str
            URL of the feed.
        marker : str
            Marker that was just notified.
        """
        self._markers[feed_url] = marker
        logger.debug("Recorded marker %r for %s", marker, feed_url)

    def last_marker(self, feed_url: str) -> str | None:
        """Return the recorded marker of the feed, or None if never notified."""
        return self._markers.get(feed_url)

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the recorded markers."""
        return dict(self._markers)

    def __contains__(self, feed_url: object) -> bool:
        return feed_url in self._markers

    def __len__(self) -> int:
        return len(self._markers)
