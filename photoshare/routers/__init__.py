import importlib
import pkgutil

from fastapi import FastAPI, APIRouter


def register_routers(app: FastAPI) -> None:
    package = importlib.import_module(__name__)

    for _, module_name, is_pkg in pkgutil.iter_modules(package.__path__):
        if is_pkg:
            continue

        router = getattr(importlib.import_module(f"{__name__}.{module_name}"), "router", None)
        if isinstance(router, APIRouter):
            app.include_router(router)
