"""Run the Workboard server: ``python -m workboard``."""

from __future__ import annotations

import uvicorn

from workboard.config import get_settings
from workboard.logging import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(log_dir=settings.log_dir, level=settings.log_level)
    uvicorn.run(
        "workboard.api.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
