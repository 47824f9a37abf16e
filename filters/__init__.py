from filters.dedup import filter_delivered
from filters.keywords import filter_blocked, is_blocked, select_level

__all__ = ["filter_blocked", "filter_delivered", "is_blocked", "select_level"]
