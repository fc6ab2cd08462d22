from .store_repository import StoreRepository

__all__ = ["StoreRepository"]
