"""Application entry point for the lecture quiz desktop client."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication

from lecture_quiz.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION, HELP_TEXT
from lecture_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from lecture_quiz.constants.quiz_constants import DEFAULT_DATA_DIR, STORE_FILE_NAME
from lecture_quiz.core.quiz_exporter import save_quiz_to_file
from lecture_quiz.core.quiz_importer import QuizImportError, load_quiz_from_file, store_imported_quiz
from lecture_quiz.core.services.quiz_store import QuizStore, QuizStoreError
from lecture_quiz.server.api_server import start_api_server
from lecture_quiz.ui.quiz_window import QuizWindow
from lecture_quiz.utils.logging_config import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lecture-quiz",
        description=APP_ABOUT_TEXT,
        epilog=HELP_TEXT,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR)
    parser.add_argument("--quiz-id", type=int, help="Quiz to open in the quiz window.")
    parser.add_argument("--preview", action="store_true", help="Open the quiz as an instructor preview.")
    parser.add_argument("--import", dest="import_path", type=Path, help="Import a quiz text file first.")
    parser.add_argument("--activate", action="store_true", help="Mark an imported quiz as active.")
    parser.add_argument("--export", dest="export_path", type=Path, help="Write the quiz to a text file and exit.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--no-server", action="store_true", help="Do not start the HTTP API.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging and the store, start the API server, and launch the Qt UI."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logger = configure_logging()
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    try:
        store = QuizStore(args.data_dir / STORE_FILE_NAME)
    except QuizStoreError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    quiz_id = args.quiz_id
    if args.import_path is not None:
        try:
            imported = load_quiz_from_file(args.import_path)
            quiz_id = store_imported_quiz(store, imported, is_active=args.activate).id
        except (OSError, QuizImportError, QuizStoreError) as exc:
            logger.error("Could not import %s: %s", args.import_path, exc)
            sys.exit(1)
        logger.info("Imported %s as quiz %s", args.import_path, quiz_id)

    if args.export_path is not None:
        if quiz_id is None:
            logger.error("--export needs --quiz-id or --import.")
            sys.exit(2)
        try:
            save_quiz_to_file(args.export_path, store.fetch_quiz(quiz_id))
        except (OSError, ValueError, QuizStoreError) as exc:
            logger.error("Could not export quiz %s: %s", quiz_id, exc)
            sys.exit(1)
        logger.info("Exported quiz %s to %s", quiz_id, args.export_path)
        return

    if quiz_id is None and args.no_server:
        logger.error("Nothing to do: pass --quiz-id or --import, or run the API server.")
        sys.exit(2)

    server_thread = None
    if not args.no_server:
        server_thread = start_api_server(store=store, host=args.host, port=args.port)
        logger.info("Quiz API listening on http://%s:%s/api", args.host, args.port)

    if quiz_id is None:
        # Server only
        server_thread.join()
        return

    app = QApplication(sys.argv)
    window = QuizWindow(gateway=store, quiz_id=quiz_id, privileged=args.preview)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
