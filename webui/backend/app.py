"""Litestar ASGI application for the StoryClip Web API."""
from __future__ import annotations

from typing import Any, Callable

from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.di import Provide
from litestar.exceptions import HTTPException
from litestar.logging import LoggingConfig
from litestar.status_codes import HTTP_503_SERVICE_UNAVAILABLE

from storyclip.config import Config
from storyclip.llm import get_completer
from webui.backend.routes.config import get_config, save_config
from webui.backend.routes.storyboard import create_storyboard, plan_clips


def _provide_completer() -> Any:
    try:
        return get_completer(Config.load())
    except ValueError as e:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


def create_app(completer_provider: Callable[[], Any] | None = None) -> Litestar:
    return Litestar(
        route_handlers=[
            get_config,
            save_config,
            plan_clips,
            create_storyboard,
        ],
        dependencies={
            "completer": Provide(completer_provider or _provide_completer, sync_to_thread=False),
        },
        cors_config=CORSConfig(
            allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        ),
        logging_config=LoggingConfig(
            loggers={
                "storyclip": {"level": "INFO", "handlers": ["queue_listener"]},
                "webui": {"level": "INFO", "handlers": ["queue_listener"]},
            }
        ),
    )


app = create_app()
