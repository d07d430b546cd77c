from .filter_state import FilterStateManager, Phase
from .filter_storage import JsonFileStorage, storage_for_user
from .listings_service import HerHomesService
from .query_translator import translate_listing_query

__all__ = [
    "FilterStateManager",
    "Phase",
    "JsonFileStorage",
    "storage_for_user",
    "HerHomesService",
    "translate_listing_query",
]
