"""Process entrypoint running the API with uvicorn."""

import logging

import uvicorn
from pydantic import ValidationError

from calorie_planner.api.app import create_app
from calorie_planner.app_logging import configure_logging
from calorie_planner.config import Settings
from calorie_planner.containers import build_container

_logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Load settings, exiting when required credentials are missing."""
    try:
        return Settings()
    except ValidationError as exc:
        missing = ", ".join(
            str(error["loc"][0]).upper() for error in exc.errors() if error["loc"]
        )
        _logger.error("Missing or invalid settings: %s", missing or exc)  # noqa: TRY400
        raise SystemExit(1) from exc


def main() -> None:
    """Start the API server on the configured port."""
    configure_logging()
    settings = load_settings()
    app = create_app(build_container(settings))
    _logger.info("Server running on http://localhost:%s", settings.port)
    _logger.info("Open http://localhost:%s/planner.html in your browser", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
