# Storage Adapters Package
from .json_store import JsonCardRepository

__all__ = ["JsonCardRepository"]
