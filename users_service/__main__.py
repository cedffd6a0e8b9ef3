from __future__ import annotations

import argparse

import uvicorn

from users_service.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Users service with request metrics and tracing")
    parser.add_argument("--host", default=settings.host, help="Address to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind")
    args = parser.parse_args()

    uvicorn.run(
        "users_service.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
