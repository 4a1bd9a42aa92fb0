from functools import lru_cache

from ..settings import get_settings
from .base import GatewayAdapter
from .phonepe.adapter import PhonePeAdapter


@lru_cache
def get_adapter() -> GatewayAdapter:
    """
    FastAPI dependency. Built once per process from the startup settings;
    tests swap it through ``app.dependency_overrides[get_adapter]``.
    """
    return PhonePeAdapter(get_settings())
