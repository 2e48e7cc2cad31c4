"""Audio publisher module for pub/sub event publishing."""

import logging

from pubsub import pub

from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)

TOPIC_AUDIO_FRAME = "audio.frame"
TOPIC_AUDIO_ERROR = "audio.error"


class AudioPublisher:
    """Publishes captured frames and device errors on pub/sub topics."""

    def __init__(self, topic: str = TOPIC_AUDIO_FRAME, error_topic: str = TOPIC_AUDIO_ERROR):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for audio frames
            error_topic: Pub/sub topic name for device errors
        """
        self.topic = topic
        self.error_topic = error_topic
        logger.info(f"AudioPublisher initialized with topic: {topic}")

    def publish_audio_frame(self, frame: AudioFrame) -> None:
        pub.sendMessage(self.topic, frame=frame)

    def publish_device_error(self, message: str) -> None:
        logger.error(f"Publishing audio device error: {message}")
        pub.sendMessage(self.error_topic, message=message)
