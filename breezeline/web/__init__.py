"""Web layer: FastAPI app, routes, auth and dependencies."""
