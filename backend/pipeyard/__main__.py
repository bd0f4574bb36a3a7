"""Run the Pipeyard backend: `python -m pipeyard`."""

import uvicorn

from pipeyard.config import settings


def main() -> None:
    uvicorn.run(
        "pipeyard.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
