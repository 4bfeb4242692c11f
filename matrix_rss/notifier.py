"""
Protocol definitions for the poll loop collaborators.

Defines the interfaces that feed clients and notification backends
must implement.
"""

from typing import Protocol, runtime_checkable

from matrix_rss.feed import FeedSnapshot


@runtime_checkable
class FeedFetcher(Protocol):
    """
    Protocol defining the interface for feed clients.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def fetch_feed(self, url: str) -> FeedSnapshot:
        """
        Fetch and parse the feed at ``url``.

        Raises
        ------
        FetchError
            If the feed cannot be fetched or parsed.
        """
        ...

    async def close(self) -> None:
        """Release any network resources."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification backends.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def test_connection(self) -> bool:
        """
        Test the connection to the notification backend.

        Returns
        -------
        bool
            True if the connection is working and messages can be sent.
        """
        ...

    async def send(self, message: str) -> None:
        """
        Deliver a markdown message.

        Parameters
        ----------
        message : str
            The message to send.

        Raises
        ------
        DeliveryError
            If the message could not be delivered.
        """
        ...

    async def close(self) -> None:
        """
        Close the notifier and release any resources.

        This method should be called when shutting down the application
        to cleanly close connections and free resources.
        """
        ...
