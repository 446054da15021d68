"""
api_template.api.__main__

Entrypoint for running the FastAPI application via `python -m api_template.api`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from api_template.api.app import create_app
from api_template.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Forwarded headers are also read directly by the OpenAPI servers transformer, so the
# published server URL matches what the caller used.
