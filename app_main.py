"""Application entry point for the ExamQt backend."""

from __future__ import annotations

from exam_app.constants.about import APP_NAME, APP_VERSION
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.exam_engine import ExamEngine
from exam_app.server.api_server import run_api_server
from exam_app.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, build the exam engine, and serve the API."""
    logger = configure_logging()
    logger.info("Starting %s %s on %s:%d", APP_NAME, APP_VERSION, DEFAULT_HOST, DEFAULT_PORT)

    engine = ExamEngine()
    run_api_server(engine=engine, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
