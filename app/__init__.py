from __future__ import annotations

from typing import Mapping

from flask import Flask

from .config import Config
from .logging import init_logging
from .routes.mdraid import mdraid_api


def create_app(config_object: object | Mapping[str, object] | None = None) -> Flask:
    app = Flask(__name__)

    app.config.from_object(Config)
    if config_object:
        if isinstance(config_object, Mapping):
            app.config.from_mapping(config_object)
        else:
            app.config.from_object(config_object)

    init_logging(app)
    _register_blueprints(app)

    return app


def _register_blueprints(app: Flask) -> None:
    app.register_blueprint(mdraid_api)
