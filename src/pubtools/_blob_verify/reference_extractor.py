import hashlib
import logging
from typing import Callable, List, Optional, Union

from .blob_locator import SHARD_PREFIX_LENGTH
from .digest import split_digest
from .exceptions import InvalidDigestLength, MalformedDigest, UnresolvedManifest
from .models import BlobReference, Layer, Manifest, ManifestList, ManifestNode

LOG = logging.getLogger("pubtools.blob_verify")

MANIFEST_LIST_V2S2_TYPE = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_INDEX_TYPE = "application/vnd.oci.image.index.v1+json"
MANIFEST_LIST_TYPES = (MANIFEST_LIST_V2S2_TYPE, OCI_INDEX_TYPE)

ManifestResolver = Callable[[Manifest], Optional[ManifestNode]]


def is_manifest_list(node: Union[ManifestNode, str, None]) -> bool:
    """
    Check whether a document, or a media type, denotes a manifest list.

    Args:
        node (Manifest|ManifestList|str):
            Parsed document or its media type.
    Returns (bool):
        True for manifest lists and OCI indexes.
    """
    if isinstance(node, ManifestList):
        return True
    if isinstance(node, Manifest):
        return node.media_type in MANIFEST_LIST_TYPES
    return node in MANIFEST_LIST_TYPES


def _digest_size(algorithm: str, digest: str) -> int:
    if algorithm not in hashlib.algorithms_available:
        raise MalformedDigest("Digest algorithm of '%s' is not supported" % digest)
    try:
        size = hashlib.new(algorithm).digest_size
    except ValueError as e:
        raise MalformedDigest("Digest algorithm of '%s' is not supported: %s" % (digest, e))
    # variable length digests (shake_*) can't be checked against a fixed hex length
    if not size:
        raise MalformedDigest("Digest algorithm of '%s' has no fixed length" % digest)
    return size


def _reference(layer: Layer) -> BlobReference:
    algorithm, hex_digest = split_digest(layer.digest)
    digest_size = _digest_size(algorithm, layer.digest)
    if len(hex_digest) < SHARD_PREFIX_LENGTH:
        raise InvalidDigestLength("Digest '%s' is too short" % layer.digest)
    if len(hex_digest) != 2 * digest_size:
        raise MalformedDigest(
            "Digest '%s' should have %d hex characters" % (layer.digest, 2 * digest_size)
        )
    return BlobReference(hex_digest, layer.size, algorithm)


def extract_references(
    node: ManifestNode, resolver: Optional[ManifestResolver] = None
) -> List[BlobReference]:
    """
    Get blobs referenced by a manifest or a manifest list.

    A manifest yields its config blob followed by its layers in manifest order. Entries of
    a manifest list are resolved to their manifest documents and recursed into; the entry
    digest identifies a manifest document, so it's never returned as a blob. A blob
    referenced more than once is returned only once.

    Args:
        node (Manifest|ManifestList):
            Parsed document.
        resolver (callable):
            Gets the parsed manifest document of a manifest list entry. Returns None if the
            document can't be found.
    Returns ([BlobReference]):
        Blob references in traversal order.
    Raises:
        MalformedDigest: a digest isn't in the 'algorithm:hex' form, its algorithm isn't
            supported or its length doesn't match the algorithm.
        InvalidDigestLength: a digest is too short to be located in the blob store.
        UnresolvedManifest: a manifest list entry couldn't be resolved.
    """
    references: List[BlobReference] = []
    seen = set()
    for reference in _walk(node, resolver, []):
        if reference.digest not in seen:
            seen.add(reference.digest)
            references.append(reference)
    return references


def _walk(
    node: ManifestNode, resolver: Optional[ManifestResolver], resolving: List[str]
) -> List[BlobReference]:
    if isinstance(node, ManifestList):
        references = []
        for entry in node.manifests:
            references.extend(_walk_entry(entry, resolver, resolving))
        return references

    if is_manifest_list(node):
        # list media type without a 'manifests' field, nothing to recurse into
        LOG.warning("Manifest list %s has no manifests", node.digest or "")
        return []

    references = []
    if node.config is not None:
        references.append(_reference(node.config))
    for layer in node.layers or []:
        references.append(_reference(layer))
    return references


def _walk_entry(
    entry: Manifest, resolver: Optional[ManifestResolver], resolving: List[str]
) -> List[BlobReference]:
    # entries embedding their own blobs don't need resolving
    if entry.config is not None or entry.layers is not None:
        return _walk(entry, resolver, resolving)

    if entry.digest is None:
        raise UnresolvedManifest("Manifest list entry has no digest")
    split_digest(entry.digest)
    if entry.digest in resolving:
        raise UnresolvedManifest("Manifest %s references itself" % entry.digest)

    child = resolver(entry) if resolver else None
    if child is None:
        raise UnresolvedManifest("Manifest %s could not be found" % entry.digest)

    LOG.debug("Resolved manifest list entry %s", entry.digest)
    return _walk(child, resolver, resolving + [entry.digest])
