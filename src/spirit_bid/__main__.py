"""Run the local API server: ``python -m spirit_bid`` or ``spirit-bid``."""

import socket
import sys

import uvicorn

from .config import settings


def port_available(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
        except OSError:
            return False
    return True


def main() -> None:
    if not port_available(settings.host, settings.port):
        sys.exit(
            f"ERROR: {settings.host}:{settings.port} is already in use. "
            "Stop the other server or set PORT in .env."
        )

    uvicorn.run(
        "spirit_bid.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
