"""Application entry point for the quiz portal."""

from __future__ import annotations

import argparse
from pathlib import Path
import socket
import sys

from quiz_portal.constants.about import APP_NAME, APP_VERSION
from quiz_portal.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_portal.core.services.question_store import FileQuestionStore
from quiz_portal.core.services.quiz_catalog import QuizCatalog
from quiz_portal.core.services.result_sink import JsonlResultSink
from quiz_portal.utils.logging_config import configure_logging

# Relative, so it resolves against the directory the portal is started from.
DEFAULT_DATA_DIR = Path("data")


def _determine_student_url(port: int) -> str:
    """Best-effort determination of the local IP for student-facing URL."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quiz-portal", description=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Interface the web server binds to")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port the web server listens on")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA_DIR,
        help="Directory holding quizzes.json, banks/ and results.jsonl (default: ./data)",
    )
    parser.add_argument("--log-level", default="info", help="Logging level name (debug, info, warning, ...)")
    parser.add_argument(
        "--desktop",
        metavar="QUIZ_ID",
        help="Take QUIZ_ID in a desktop window instead of serving the web portal",
    )
    parser.add_argument("--student-id", help="Roll number used with --desktop")
    return parser


def _run_server(args: argparse.Namespace, catalog: QuizCatalog, store: FileQuestionStore, sink: JsonlResultSink) -> None:
    from quiz_portal.core.services.session_registry import SessionRegistry
    from quiz_portal.server.api_server import create_api_app, run_api_server

    app = create_api_app(catalog, SessionRegistry(store, sink))
    run_api_server(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_desktop(args: argparse.Namespace, catalog: QuizCatalog, store: FileQuestionStore, sink: JsonlResultSink) -> None:
    from PySide6 import QtAsyncio
    from PySide6.QtCore import QTimer
    from PySide6.QtWidgets import QApplication

    from quiz_portal.ui.quiz_window import QuizWindow

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    window = QuizWindow(
        catalog=catalog,
        question_store=store,
        result_sink=sink,
        quiz_id=args.desktop,
        student_id=args.student_id,
    )
    window.resize(1000, 700)
    window.show()
    QTimer.singleShot(0, window.begin)
    QtAsyncio.run(handle_sigint=True)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, initialize logging, and start the web portal or the desktop window."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.desktop and not args.student_id:
        parser.error("--desktop requires --student-id")

    logger = configure_logging(args.log_level)
    logger.info("Starting %s %s with data in %s", APP_NAME, APP_VERSION, args.data_dir)

    data_dir: Path = args.data_dir
    store = FileQuestionStore(data_dir / "banks")
    sink = JsonlResultSink(data_dir / "results.jsonl", answer_keys=store.answer_key)
    catalog = QuizCatalog.from_file(data_dir / "quizzes.json", has_submitted=sink.has_submitted)

    if args.desktop:
        _run_desktop(args, catalog, store, sink)
    else:
        logger.info("Student page available at %s", _determine_student_url(args.port))
        _run_server(args, catalog, store, sink)


if __name__ == "__main__":
    main()
