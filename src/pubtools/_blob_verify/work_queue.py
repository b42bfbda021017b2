from typing import List, Set

from .models import BlobReference


class BlobWorkQueue:
    """
    Gate which admits each blob digest for verification only once.

    All references of a manifest tree pass through a single instance. It is owned by the
    thread driving the traversal and is not thread-safe; verification workers never see it.
    """

    def __init__(self) -> None:
        """Initialize."""
        self._digests: Set[str] = set()
        self.admitted: List[BlobReference] = []
        self.skipped = 0

    def admit(self, reference: BlobReference) -> bool:
        """
        Admit a blob reference unless its digest was admitted before.

        Args:
            reference (BlobReference):
                Blob reference extracted from a manifest.
        Returns (bool):
            True if newly admitted, False if it's a duplicate.
        """
        if reference.digest in self._digests:
            self.skipped += 1
            return False
        self._digests.add(reference.digest)
        self.admitted.append(reference)
        return True

    def __contains__(self, digest: object) -> bool:
        return digest in self._digests

    def __len__(self) -> int:
        return len(self.admitted)
