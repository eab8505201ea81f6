"""
Shared constants for Canvas Sync.
"""

# Concurrent downloads when not overridden on the command line
DEFAULT_DOWNLOAD_WORKERS = 10

# Capacity of the channels connecting pipeline stages
CHANNEL_SIZE = 10

# Items per listing page requested from Canvas (its maximum)
PER_PAGE = 100

# Prefix of in-flight downloads, next to their destination
TEMP_PREFIX = "_download_"

CONFIG_FILENAME = ".canvassync.json"
