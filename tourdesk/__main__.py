from __future__ import annotations

import uvicorn

from .config import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run("tourdesk.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
