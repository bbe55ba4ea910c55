"""Entry point for uvicorn/gunicorn: ``uvicorn userapi.app_factory:app``.

The app is built on first access to ``app``, so importing this module does not
read settings or open a store.
"""
from functools import lru_cache

from fastapi import FastAPI

from userapi.app import create_app


@lru_cache()
def get_app() -> FastAPI:
    return create_app()


def __getattr__(name: str):
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["app", "create_app", "get_app"]
