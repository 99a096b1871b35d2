"""Server entrypoint: runs the exposure API under uvicorn (host/port from env)."""
import os

import uvicorn

from lookthrough.config.settings import get_settings
from lookthrough.main import app


def main() -> None:
    host = os.environ.get("LOOKTHROUGH_HOST", "127.0.0.1")
    port = int(os.environ.get("LOOKTHROUGH_PORT", "8001"))
    uvicorn.run(app, host=host, port=port, log_level=get_settings().log_level.lower())


if __name__ == "__main__":
    main()
