import os

from .exceptions import InvalidDigestLength

SHARD_PREFIX_LENGTH = 2


def locate(store_root: str, hex_digest: str) -> str:
    """
    Get the path where a blob is stored in the sharded blob store.

    Layout is <store-root>/<first 2 hex characters>/<full hex digest>. The filesystem isn't
    accessed.

    Args:
        store_root (str):
            Root directory of the blob store.
        hex_digest (str):
            Digest of the blob without the algorithm prefix.
    Returns (str):
        Path to the blob.
    """
    if len(hex_digest) < SHARD_PREFIX_LENGTH:
        raise InvalidDigestLength(
            "Digest '%s' is shorter than %d characters" % (hex_digest, SHARD_PREFIX_LENGTH)
        )
    return os.path.join(store_root, hex_digest[:SHARD_PREFIX_LENGTH], hex_digest)
