"""Route modules, each exposing ``create_router(manager)``."""
