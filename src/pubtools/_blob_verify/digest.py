import hashlib
import re
from typing import Tuple

from .exceptions import MalformedDigest

DEFAULT_ALGORITHM = "sha256"
DIGEST_SEPARATOR = ":"
CHUNK_SIZE = 1024 * 1024

HEX_PATTERN = re.compile(r"^[0-9a-f]+$")


def compute_digest(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Compute content digest of a byte sequence.

    Args:
        data (bytes):
            Content to hash.
        algorithm (str):
            Name of a hashlib algorithm.
    Returns (str):
        Lowercase hex encoding of the digest.
    """
    return hashlib.new(algorithm, data).hexdigest()


def compute_file_digest(
    path: str, algorithm: str = DEFAULT_ALGORITHM, chunk_size: int = CHUNK_SIZE
) -> str:
    """
    Compute content digest of a file without loading it into memory at once.

    Args:
        path (str):
            Path to the file.
        algorithm (str):
            Name of a hashlib algorithm.
        chunk_size (int):
            Number of bytes read per iteration.
    Returns (str):
        Lowercase hex encoding of the digest.
    """
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def split_digest(digest: str) -> Tuple[str, str]:
    """
    Split a digest in the 'algorithm:hex' form.

    Args:
        digest (str):
            Digest as written in manifests, e.g. 'sha256:5f88c70a...'.
    Returns ((str, str)):
        Algorithm and hex encoding.
    Raises:
        MalformedDigest: separator is missing, a part is empty or the hex part isn't lowercase hex.
    """
    algorithm, separator, hex_digest = digest.partition(DIGEST_SEPARATOR)
    if not separator or not algorithm or not hex_digest:
        raise MalformedDigest("Digest '%s' is not in the 'algorithm:hex' form" % digest)
    if not HEX_PATTERN.match(hex_digest):
        raise MalformedDigest("Digest '%s' doesn't have a lowercase hex encoding" % digest)
    return (algorithm, hex_digest)


def compose_digest(algorithm: str, hex_digest: str) -> str:
    """Compose a digest in the 'algorithm:hex' form."""
    return "%s%s%s" % (algorithm, DIGEST_SEPARATOR, hex_digest)
