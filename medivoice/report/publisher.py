"""Report update publisher for pub/sub event publishing."""

import logging
from typing import Callable

from pubsub import pub

from ..models.events import ReportUpdateEvent

logger = logging.getLogger(__name__)


class ReportPublisher:
    """Publishes report updates using pubsub.pub so several views can follow one run."""

    def __init__(self, topic: str = "report_updates"):
        """Initialize report publisher.

        Args:
            topic: Pub/sub topic name for report updates
        """
        self.topic = topic
        self.sequence_number = 0
        self.status = "streaming"
        logger.info(f"ReportPublisher initialized with topic: {topic}")

    def publish_update(self, text: str) -> None:
        """Publish the full report text accumulated so far.

        Args:
            text: Complete text so far (not just the delta)
        """
        self.sequence_number += 1
        event = ReportUpdateEvent(text=text, status=self.status, sequence_number=self.sequence_number)
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published report update #{self.sequence_number} ({len(text)} chars)")

    def publish_final(self, text: str, status: str) -> None:
        """Publish the terminal state of a run."""
        self.status = status
        self.publish_update(text)

    def get_callback(self) -> Callable[[str], None]:
        """Get callback function for ReportGenerator to use.

        Returns:
            Callback function that publishes report updates
        """
        return self.publish_update
