from .client import ProviderClient
from .schemas import ProviderClientConfig

__all__ = ["ProviderClient", "ProviderClientConfig"]
