"""Run the API server: ``python -m app`` from the backend directory."""

import uvicorn

from .services.config import config_service


def main() -> None:
    """Start uvicorn with the ``server`` section of config.yaml."""
    config_service.load_and_validate()
    uvicorn.run(
        "app.main:app",
        host=config_service.get("server.host", "127.0.0.1"),
        port=config_service.get("server.port", 8000),
        reload=config_service.get("server.debug", False),
    )


if __name__ == "__main__":
    main()
