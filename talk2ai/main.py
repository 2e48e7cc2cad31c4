"""Main application entry point for talk2ai."""

import sys
import time
import argparse
import logging
from pathlib import Path

from pubsub import pub

from talk2ai.capture.controller import TOPIC_STATE, TOPIC_PROGRESS
from talk2ai.models.session import CaptureState
from talk2ai.models.vad import CaptureMode
from talk2ai.services.assistant_service import AssistantService
from talk2ai.ui.commands import CommandHandler
from talk2ai.ui.console import ConversationConsole

from . import __version__
from .config import Talk2AIConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: str, log_level: str = None):
        # Load configuration
        self.config = Talk2AIConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = ConversationConsole()

    def init(self, wav_path: str = None, continuous: bool = False):
        logger.info("Initializing services...")

        self.service = AssistantService(self.config)
        if continuous:
            controller = self.service.controller
            controller.update_vad_configuration(controller.vad_config.replace(mode=CaptureMode.CONTINUOUS))

        pub.subscribe(self.console.on_state, TOPIC_STATE)
        pub.subscribe(self.console.on_progress, TOPIC_PROGRESS)

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1600)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        if wav_path:
            from talk2ai.audio.file_source import WavFileSource

            def factory(publisher):
                return WavFileSource(wav_path, publisher.publish_audio_frame,
                                     chunk_size=chunk_size, realtime=True)
        else:
            from talk2ai.audio.capture import AudioCapture

            def factory(publisher):
                return AudioCapture(
                    callback=publisher.publish_audio_frame,
                    error_callback=publisher.publish_device_error,
                    sample_rate=sample_rate,
                    chunk_size=chunk_size,
                    channels=channels,
                    device_index=self.config.get('audio.device_index'),
                )

        self.service.start(factory)

    def run(self, duration: int):
        """Capture one segment, wait for it to be processed and print the conversation."""
        try:
            self.service.start_capture()
            deadline = time.time() + duration if duration else None
            while self.service.controller.capturing:
                if deadline and time.time() >= deadline:
                    logger.info("Auto mode duration reached, stopping capture")
                    self.service.stop_capture()
                    break
                time.sleep(0.1)
            controller = self.service.controller
            while controller.is_processing or controller.is_ai_processing:
                time.sleep(0.1)
            self.service.wait_idle()
            self.console.print_conversation(self.service.store.active_conversation)
            if controller.state is CaptureState.ERROR:
                logger.error(f"Capture ended with error: {controller.error}")
        finally:
            self.cleanup()

    def run_interactive(self):
        """Read commands from the terminal until the user quits."""
        try:
            CommandHandler(self.service, self.console).run()
        finally:
            self.cleanup()

    def cleanup(self):
        self.service.shutdown()


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/talk2ai.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("talk2ai starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for talk2ai."""
    parser = argparse.ArgumentParser(
        description="talk2ai - capture speech, transcribe it and ask an AI provider",
    )

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to configuration YAML file (see talk2ai.example.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run in automatic mode: capture one segment, process it, print the conversation and exit"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Stop capturing after this many seconds in auto mode (default: let VAD or the timer decide)"
    )

    parser.add_argument(
        "--wav",
        type=str,
        help="Replay a 16-bit WAV file instead of capturing from the audio device"
    )

    parser.add_argument(
        "--continuous",
        action="store_true",
        help="Disable VAD cutoff; only --duration or the max duration ends the recording"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"talk2ai v{__version__}"
    )

    args = parser.parse_args()

    server = Server(args.config, args.log_level)
    try:
        server.init(wav_path=args.wav, continuous=args.continuous)
        if args.auto:
            server.run(args.duration)
        else:
            server.run_interactive()
    except KeyboardInterrupt:
        server.cleanup()
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
