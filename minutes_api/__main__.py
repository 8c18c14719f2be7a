from __future__ import annotations

import uvicorn

from .config import load_settings


def main() -> None:
    settings = load_settings()
    # log_config=None keeps the JSON logging installed by create_app()
    uvicorn.run("minutes_api.app:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
