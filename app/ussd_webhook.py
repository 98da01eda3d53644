from __future__ import annotations

import os

from app.config import load_config
from app.demo_menus import build_router
from dispatch.engine_factory import create_engine
from transport.http_api import create_api

DEFAULT_CONFIG_PATH = "config.yaml"

CONFIG_PATH = os.getenv("USSDFLOW_CONFIG_PATH", DEFAULT_CONFIG_PATH)
CONFIG = load_config(CONFIG_PATH)
ENGINE = create_engine(CONFIG, build_router(CONFIG))

app = create_api(ENGINE, CONFIG)
