"""Main application entry point for MediVoice."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

import aiohttp
from rich.console import Console

from . import __version__
from .config import MediVoiceConfig
from .errors import MediVoiceError
from .models.report import ReportType
from .models.transcription import Transcript
from .report.publisher import ReportPublisher
from .services.dictation_service import DictationService
from .ui.report_screen import ReportScreen, print_enhanced, print_history, print_transcript

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    ".webm": "audio/webm",
    ".mp4": "audio/mp4",
    ".m4a": "audio/mp4",
    ".mp3": "audio/mp3",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
}


_FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
_CONSOLE_FORMAT = '%(levelname)s: %(message)s'

# Chatty third-party loggers kept at WARNING even in DEBUG runs.
_QUIET_LOGGERS = ("aiohttp", "asyncio", "pubsub")


def _file_handler(log_file_path: str) -> logging.Handler:
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file_path, encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    # stdout belongs to the report view; problems go to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return handler


def setup_logging(config, level: str = "INFO") -> None:
    """Route logs to the configured file, and warnings to stderr unless disabled."""
    log_file_path = config.get('logging.file_path', 'data/logs/medivoice.log')

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.addHandler(_file_handler(log_file_path))
    if config.get('logging.console_output', True):
        root_logger.addHandler(_console_handler())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"MediVoice {__version__} starting up (log level {level}, log file {log_file_path})")


def read_text_file(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


async def run_transcribe(service: DictationService, args, console: Console) -> None:
    audio_path = Path(args.audio)
    mime_type = _MIME_TYPES.get(audio_path.suffix.lower(), "audio/webm")
    transcript = await service.transcribe_recording(audio_path.read_bytes(), mime_type=mime_type,
                                                    language=args.language)
    print_transcript(console, transcript)
    if args.output:
        Path(args.output).write_text(transcript.text, encoding='utf-8')
        console.print(f"Transcript written to {args.output}", style="green")


async def run_enhance(service: DictationService, args, console: Console) -> None:
    transcript = Transcript(text=read_text_file(args.textfile))
    enhanced = await service.enhance_transcript(transcript,
                                                diarize=not args.no_diarize,
                                                terminology_only=args.terminology_only)
    print_enhanced(console, enhanced)


async def run_report(service: DictationService, args, console: Console) -> None:
    transcript = Transcript(text=read_text_file(args.textfile))
    publisher = ReportPublisher(args.topic)

    with ReportScreen(args.topic, console=console) as screen:
        result = await service.generate_report(transcript,
                                               report_type=args.type,
                                               patient_id=args.patient_id,
                                               doctor_name=args.doctor,
                                               on_update=publisher.get_callback())
        publisher.publish_final(result.accumulated_text, result.status.value)
    screen.show_result(result)

    if args.save:
        stored = service.save_report(transcript, result, patient_id=args.patient_id, doctor_name=args.doctor)
        console.print(f"Report saved: {stored.id}", style="green")


def run_history(service: DictationService, args, console: Console) -> None:
    report_type = ReportType.parse(args.type) if args.type else None
    if args.search:
        reports = service.store.search(args.search, report_type=report_type, limit=args.limit)
    else:
        reports = service.store.query(report_type=report_type, limit=args.limit)
    print_history(console, reports)


async def run_command(config: MediVoiceConfig, args, console: Console) -> None:
    async with aiohttp.ClientSession() as http_session:
        service = DictationService.from_config(config, http_session=http_session)
        if args.command == "transcribe":
            await run_transcribe(service, args, console)
        elif args.command == "enhance":
            await run_enhance(service, args, console)
        elif args.command == "report":
            await run_report(service, args, console)
        elif args.command == "history":
            run_history(service, args, console)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MediVoice - Medical dictation transcription and report generation"
    )

    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to configuration YAML file (see medivoice.example.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"MediVoice v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe = subparsers.add_parser("transcribe", help="Transcribe an audio recording")
    transcribe.add_argument("audio", help="Audio file (webm, mp4, mp3, wav, ogg)")
    transcribe.add_argument("--language", default=None, help="Language hint (default: from config)")
    transcribe.add_argument("--output", help="Write the transcript text to this file")

    enhance = subparsers.add_parser("enhance", help="Enhance and diarize a transcript")
    enhance.add_argument("textfile", help="Transcript text file")
    enhance.add_argument("--no-diarize", action="store_true", help="Do not label DOCTOR/PATIENT turns")
    enhance.add_argument("--terminology-only", action="store_true",
                         help="Only fix medical terminology and grammar")

    report = subparsers.add_parser("report", help="Generate a clinical report from a transcript")
    report.add_argument("textfile", help="Transcript text file")
    report.add_argument("--type", default="general", choices=[t.value for t in ReportType],
                        help="Report type (default: general)")
    report.add_argument("--patient-id", default=None, help="Patient ID to include in the report")
    report.add_argument("--doctor", default=None, help="Attending physician")
    report.add_argument("--save", action="store_true", help="Save the finished report")
    report.add_argument("--topic", default="report_updates", help=argparse.SUPPRESS)

    history = subparsers.add_parser("history", help="List stored reports")
    history.add_argument("--type", default=None, choices=[t.value for t in ReportType])
    history.add_argument("--limit", type=int, default=20)
    history.add_argument("--search", default=None,
                         help="Only reports whose transcription, content or patient ID contain this text")

    return parser


def main() -> None:
    """Main entry point for MediVoice."""
    args = build_parser().parse_args()
    console = Console()

    try:
        config = MediVoiceConfig(args.config)
        setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
        asyncio.run(run_command(config, args, console))
    except KeyboardInterrupt:
        console.print("\nCancelled.")
        sys.exit(130)
    except MediVoiceError as e:
        console.print(f"Error: {e.user_message}", style="bold red")
        logger.error(f"{type(e).__name__}: {e.user_message}")
        sys.exit(1)
    except Exception as e:
        console.print(f"Error: {e}", style="bold red")
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
