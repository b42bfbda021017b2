import logging
import os
from typing import Dict, Iterator, List, Optional, Set

from .digest import DEFAULT_ALGORITHM, compose_digest, compute_digest, split_digest
from .exceptions import MalformedDigest, UnparsableManifest
from .manifest_schema import load_manifest
from .models import Manifest, ManifestFailure, ManifestNode, ManifestSource

LOG = logging.getLogger("pubtools.blob_verify")

MANIFEST_SUFFIX = ".json"


def is_digest(name: str) -> bool:
    """Check whether a name, e.g. of a directory, is a digest in the 'algorithm:hex' form."""
    try:
        split_digest(name)
    except MalformedDigest:
        return False
    return True


def component_name(root: str, directory: str) -> str:
    """
    Get name of the component a manifest directory belongs to.

    The name is the directory path relative to the tree root, without digest-named
    directories which hold the manifests of single architectures.

    Args:
        root (str):
            Root of the manifest tree.
        directory (str):
            Directory containing a manifest.
    Returns (str):
        Component name, e.g. 'openshift4/ose-cli'.
    """
    relative = os.path.relpath(directory, root)
    parts = [
        part for part in relative.split(os.sep) if part not in ("", ".") and not is_digest(part)
    ]
    if not parts:
        return os.path.basename(os.path.normpath(root))
    return "/".join(parts)


class ManifestTree:
    """
    Manifest documents found in a directory tree.

    Manifests of a multi-arch image may be stored next to its manifest list, in directories
    named by their digest. Such manifests are found by resolve() when the list is traversed,
    and once the list is marked resolved, sources() doesn't yield them again.
    """

    def __init__(self, root: str) -> None:
        """
        Initialize.

        Args:
            root (str):
                Root directory of the tree.
        """
        self.root = root
        self.entries: List[ManifestSource] = []
        self.failures: List[ManifestFailure] = []
        self._by_digest: Dict[str, ManifestSource] = {}
        self._resolved: Set[int] = set()
        self._pending: Set[int] = set()

    def discover(self) -> "ManifestTree":
        """
        Walk the tree and parse every manifest in it.

        Directories and files are visited in sorted order. Manifests which can't be read or
        parsed are recorded as failures.

        Returns (ManifestTree):
            The tree itself.
        """
        LOG.info("Discovering manifests in %s", self.root)

        def walk_error(error: OSError) -> None:
            LOG.warning("Can't list directory %s: %s", error.filename, error)
            self.failures.append(
                ManifestFailure(component_name(self.root, error.filename), error.filename, error)
            )

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=walk_error):
            dirnames.sort()
            for filename in sorted(filenames):
                if filename.endswith(MANIFEST_SUFFIX):
                    self._add_file(dirpath, filename)

        LOG.debug("Found %d manifests in %s", len(self.entries), self.root)
        return self

    def _add_file(self, dirpath: str, filename: str) -> None:
        path = os.path.join(dirpath, filename)
        component = component_name(self.root, dirpath)
        try:
            with open(path, "rb") as f:
                content = f.read()
            node = load_manifest(content)
        except (OSError, UnparsableManifest) as e:
            self.failures.append(ManifestFailure(component, path, e))
            return

        source = ManifestSource(component, node, path)
        self.entries.append(source)
        self._by_digest.setdefault(
            compose_digest(DEFAULT_ALGORITHM, compute_digest(content)), source
        )
        directory = os.path.basename(dirpath)
        if is_digest(directory):
            self._by_digest.setdefault(directory, source)

    def resolve(self, entry: Manifest) -> Optional[ManifestNode]:
        """
        Get the manifest document a manifest list entry points to.

        The document isn't skipped by sources() until mark_resolved() is called, so children
        of a list which fails to resolve completely are still verified on their own.

        Args:
            entry (Manifest):
                Manifest list entry.
        Returns (Manifest|ManifestList):
            Parsed document, or None if it isn't in the tree.
        """
        source = self._by_digest.get(entry.digest or "")
        if source is None:
            return None
        self._pending.add(id(source))
        return source.node

    def mark_resolved(self, source: ManifestSource) -> None:
        """Mark manifests resolved while extracting references of a source as verified."""
        if self._pending:
            LOG.debug("Manifest %s resolved %d manifests", source.path, len(self._pending))
        self._resolved.update(self._pending)
        self._pending.clear()

    def sources(self) -> Iterator[ManifestSource]:
        """Yield manifests in walk order, skipping those already resolved from a manifest list."""
        for source in self.entries:
            self._pending.clear()
            if id(source) in self._resolved:
                LOG.debug("Manifest %s was verified as part of a manifest list", source.path)
                continue
            yield source
        self._pending.clear()


def discover_manifests(root: str) -> ManifestTree:
    """Find and parse all manifests under a directory."""
    return ManifestTree(root).discover()
