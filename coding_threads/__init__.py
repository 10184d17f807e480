"""coding-threads - A service running many coding-agent conversations side by side, one supervised thread each."""

from .platform.server.app import create_app
from .platform.settings import Settings


def app():
    """Create the FastAPI application instance."""
    settings = Settings()
    return create_app(settings)
