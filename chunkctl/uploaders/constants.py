"""Shared constants for uploader modules.

Chunk size trades request overhead against the amount of work lost when a
transfer is interrupted mid-chunk. 1 MiB keeps resumes cheap on flaky links;
raise it (e.g. --chunk-size 8MiB) on fast, stable networks.
"""

# =============================================================================
# Chunking Defaults
# =============================================================================

# Bytes per chunk for new uploads
DEFAULT_CHUNK_SIZE = 1024 * 1024

# Bytes handed to the transport per write while streaming a chunk; progress
# callbacks fire at this cadence
DEFAULT_STREAM_BLOCK_SIZE = 64 * 1024

# Bytes read per iteration when hashing a local source
HASH_READ_SIZE = 4 * 1024 * 1024

# =============================================================================
# Transport Defaults
# =============================================================================

# HTTP timeout per request in seconds (one chunk per request)
DEFAULT_TIMEOUT = 120

# Concurrent files (never concurrent chunks within one file)
DEFAULT_UPLOAD_WORKERS = 2

# Content type used when none is supplied or guessable
DEFAULT_CONTENT_TYPE = "application/octet-stream"
