"""
Dependency getters for API route modules.

Shared objects live on ``app.state`` (set by ``create_app``) so each app
instance, including the ones built in tests, has its own.
"""

from fastapi import Request

from api.registry import RunRegistry
from config.settings import Settings
from models.progress_store import ProgressStore


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ProgressStore:
    return request.app.state.store


def get_registry(request: Request) -> RunRegistry:
    return request.app.state.registry
