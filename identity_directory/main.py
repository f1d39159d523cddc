"""Server entry point for identity-directory."""

from __future__ import annotations

import sys
from typing import NoReturn


def main() -> NoReturn:
    """Run the FastAPI application with uvicorn using configured host and port."""
    import uvicorn

    from identity_directory.core.settings import get_app_settings, get_logging_settings

    settings = get_app_settings()
    log_settings = get_logging_settings()

    uvicorn.run(
        "identity_directory.app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=settings.debug,
        log_level=log_settings.level.lower(),
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
