"""Run the demo server.

    python -m app            # listens on $PORT (default 3000)
"""

from __future__ import annotations

import uvicorn

from app.core.config import SETTINGS


def main() -> None:
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=SETTINGS.port,
        # setup_logging in app.main owns the log format
        log_config=None,
    )


if __name__ == "__main__":
    main()
