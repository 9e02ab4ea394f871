"""
pagecache Global Constants

Centralized location for all system-wide constants used across the application.
"""

from datetime import datetime, timezone


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp
    """
    return datetime.now(timezone.utc)


# Application Constants
APP_NAME = "pagecache"
APP_VERSION = "1.0.0"

# Namespace used for whole rendered pages
PAGE_NAMESPACE = "htmlpage"

# Filesystem permissions: owner+group only, no world access
DIRECTORY_MODE = 0o770
FILE_MODE = 0o660

# Entry header written in front of every filesystem blob
ENTRY_HEADER_MAGIC = b"PCACHE/1"

# Prefix of in-flight temporary files, skipped by size/count walks
TEMP_FILE_PREFIX = ".tmp-"
