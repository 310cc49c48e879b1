"""ASGI entrypoint, e.g. ``uvicorn calorie_planner.api.asgi:app``."""

from calorie_planner.api.app import create_app
from calorie_planner.containers import build_container
from calorie_planner.main import load_settings

app = create_app(build_container(load_settings()))
