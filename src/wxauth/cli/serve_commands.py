"""Run the HTTP API."""

from wxauth.api.http.app import run


def serve() -> None:
    """Start the API with uvicorn using the configured host and port."""
    run()
