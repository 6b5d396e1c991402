"""FastAPI application, dependencies and routers."""
