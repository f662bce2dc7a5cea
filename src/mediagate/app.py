"""MediaGate ASGI entry point.

    uvicorn mediagate.app:app

Settings are loaded from the environment at import time; a missing required
variable stops the process before it serves a request.
"""

from mediagate.api.main import create_app
from mediagate.config import configure_logging, load_settings

settings = load_settings()
configure_logging(settings)

app = create_app(settings=settings)
