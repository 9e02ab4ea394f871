"""
Cache services: facade, page cache and operator notification.
"""

from .cache_facade import CacheFacade
from .notifier import LogNotifier, OperatorNotifier
from .page_cache import PageCache

__all__ = ["CacheFacade", "LogNotifier", "OperatorNotifier", "PageCache"]
