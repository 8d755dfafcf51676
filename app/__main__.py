import uvicorn

from app.core.config import settings


def main() -> None:
    """Serve the monitor: python -m app"""
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
