"""
project: Cavern
module: __init__.py
License: MIT

Flask application factory.

The generation engine itself lives in ``cavern.dungeon`` and has no Flask
dependency; this module only wires the JSON blueprint and logging together.
Configuration is sourced from environment variables (optionally loaded from
a ``.env`` file) with development defaults. A local ``instance/`` directory
holds the rotating log file.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask

__version__ = "0.3.0"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _configure_logging(app: Flask) -> None:
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        app.logger.warning("instance folder %s is not writable; file logging disabled", log_dir)
        return
    log_path = os.path.join(log_dir, "app.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(fmt)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(fmt)

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(file_handler)
    root.addHandler(console)


def create_app(config_overrides=None) -> Flask:
    """Build the Flask app and register the dungeon blueprint.

    ``config_overrides`` is applied last, so tests can flip flags such as
    ``TESTING`` or ``CAVERN_DISABLE_CACHE`` without touching the environment.
    """
    load_dotenv()
    app = Flask(__name__, instance_relative_config=True)
    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        CAVERN_DISABLE_CACHE=_env_flag("CAVERN_DISABLE_CACHE"),
        CAVERN_CACHE_MAX=int(os.getenv("CAVERN_CACHE_MAX", "8")),
        CAVERN_MAX_CELLS=int(os.getenv("CAVERN_MAX_CELLS", "1000000")),
        CAVERN_FILE_LOGGING=_env_flag("CAVERN_FILE_LOGGING"),
    )
    if config_overrides:
        app.config.update(config_overrides)

    if app.config["CAVERN_FILE_LOGGING"] and not app.config.get("TESTING"):
        _configure_logging(app)

    from cavern.routes.dungeon_api import bp_dungeon

    app.register_blueprint(bp_dungeon)
    return app


__all__ = ["create_app", "__version__"]
