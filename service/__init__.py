"""todoqueue HTTP service: FastAPI app, routes, configuration and logging."""

__version__ = "1.0.0"
