"""File hashing utilities for checksum sidecars.

md5 is the default so sidecars stay readable by `md5sum -c`; xxhash is
available when speed matters more than tool compatibility.
"""

import hashlib
from pathlib import Path

try:
    import xxhash
    XXHASH_AVAILABLE = True
except ImportError:
    XXHASH_AVAILABLE = False

# Buffer size for file reading (64KB is good for most filesystems)
BUFFER_SIZE = 65536

ALGORITHMS = ("auto", "md5", "sha256", "xxhash")


def _new_hasher(algorithm: str):
    if algorithm == "auto":
        return xxhash.xxh64() if XXHASH_AVAILABLE else hashlib.md5()
    if algorithm == "xxhash":
        if not XXHASH_AVAILABLE:
            raise ImportError("xxhash not installed. Install with: pip install xxhash")
        return xxhash.xxh64()
    if algorithm == "md5":
        return hashlib.md5()
    if algorithm == "sha256":
        return hashlib.sha256()
    raise ValueError(f"Unknown algorithm: {algorithm}")


def fast_hash_file(file_path: Path, algorithm: str = "md5") -> str:
    """Compute the hex digest of a file.

    Args:
        file_path: Path to the file to hash
        algorithm: Hash algorithm ("md5", "sha256", "xxhash", or "auto")
                   "auto" uses xxhash if available, else md5

    Returns:
        Hex digest of the file hash

    Raises:
        FileNotFoundError: If file doesn't exist
        PermissionError: If file can't be read
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if not file_path.is_file():
        raise ValueError(f"Not a file: {file_path}")

    hasher = _new_hasher(algorithm)

    with open(file_path, "rb") as f:
        while True:
            data = f.read(BUFFER_SIZE)
            if not data:
                break
            hasher.update(data)

    return hasher.hexdigest()

