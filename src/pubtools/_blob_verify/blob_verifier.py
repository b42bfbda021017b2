import logging
import os
import stat
from concurrent import futures
from concurrent.futures.thread import ThreadPoolExecutor
from types import TracebackType
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, cast

from .blob_locator import locate
from .digest import compute_file_digest
from .models import BlobReference, VerificationOutcome

LOG = logging.getLogger("pubtools.blob_verify")

DEFAULT_MAX_IN_FLIGHT = 16

VerifyFunc = Callable[[str, BlobReference], VerificationOutcome]
OutcomeCallback = Callable[[VerificationOutcome, Any], None]


def verify_blob(store_root: str, reference: BlobReference) -> VerificationOutcome:
    """
    Verify that a blob exists and matches its size and digest recorded in a manifest.

    Missing or mismatching blobs are reported via the returned outcome, never raised.

    Args:
        store_root (str):
            Root directory of the blob store.
        reference (BlobReference):
            Blob to verify.
    Returns (VerificationOutcome):
        Classification of the blob.
    """
    path = locate(store_root, reference.digest)
    try:
        st = os.stat(path)
    except OSError as e:
        LOG.debug("Can't stat blob %s: %s", path, e)
        return VerificationOutcome.missing(reference.digest)
    if not stat.S_ISREG(st.st_mode):
        LOG.debug("Blob %s is not a regular file", path)
        return VerificationOutcome.missing(reference.digest)

    if st.st_size != reference.expected_size:
        return VerificationOutcome.size_mismatch(
            reference.digest, reference.expected_size, st.st_size
        )

    try:
        actual = compute_file_digest(path, reference.algorithm)
    except OSError as e:
        LOG.debug("Can't read blob %s: %s", path, e)
        return VerificationOutcome.missing(reference.digest)

    if actual != reference.digest:
        return VerificationOutcome.digest_mismatch(reference.digest, reference.digest, actual)
    return VerificationOutcome.verified(reference.digest)


class BoundedVerifier:
    """
    Run blob verifications in parallel with a bound on tasks in flight.

    Once the bound is reached, submitting waits until at least one outstanding verification
    completes. Outcomes are collected, and passed to the callback, in the thread which calls
    submit() and drain(), never in a worker thread.
    """

    def __init__(
        self,
        store_root: str,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        on_outcome: Optional[OutcomeCallback] = None,
        verify_func: VerifyFunc = verify_blob,
    ) -> None:
        """
        Initialize.

        Args:
            store_root (str):
                Root directory of the blob store.
            max_in_flight (int):
                Maximum number of verifications running at the same time.
            on_outcome (callable):
                Called with every outcome and the context it was submitted with.
            verify_func (callable):
                Function verifying a single blob.
        """
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1, got %s" % max_in_flight)
        self.store_root = store_root
        self.max_in_flight = max_in_flight
        self.on_outcome = on_outcome
        self.outcomes: List[VerificationOutcome] = []
        self._verify_func = verify_func
        self._executor = ThreadPoolExecutor(max_workers=max_in_flight)
        self._in_flight: Dict[futures.Future[VerificationOutcome], Any] = {}

    @property
    def in_flight(self) -> int:
        """Number of submitted verifications whose outcome wasn't collected yet."""
        return len(self._in_flight)

    def submit(self, reference: BlobReference, context: Any = None) -> None:
        """
        Schedule verification of a blob, waiting for a free slot if the bound is reached.

        Args:
            reference (BlobReference):
                Blob to verify.
            context:
                Arbitrary data passed to the outcome callback along with the outcome.
        """
        while len(self._in_flight) >= self.max_in_flight:
            self._collect(futures.FIRST_COMPLETED)
        future = self._executor.submit(self._verify_func, self.store_root, reference)
        self._in_flight[future] = context

    def drain(self) -> List[VerificationOutcome]:
        """
        Wait for all outstanding verifications.

        Returns ([VerificationOutcome]):
            Outcomes of all verifications submitted so far.
        """
        while self._in_flight:
            self._collect(futures.ALL_COMPLETED)
        return list(self.outcomes)

    def verify_all(
        self, references: Iterable[BlobReference], context: Any = None
    ) -> List[VerificationOutcome]:
        """Submit all references and wait for their outcomes."""
        for reference in references:
            self.submit(reference, context)
        return self.drain()

    def close(self) -> None:
        """Shut down the worker threads."""
        self._executor.shutdown(wait=True)

    def _collect(self, return_when: str) -> None:
        done, _ = futures.wait(list(self._in_flight), return_when=return_when)
        for future in done:
            context = self._in_flight.pop(future)
            if future.exception() is not None:
                raise cast(BaseException, future.exception())
            outcome = future.result()
            self.outcomes.append(outcome)
            if self.on_outcome:
                self.on_outcome(outcome, context)

    def __enter__(self) -> "BoundedVerifier":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        try:
            if exc_type is None:
                self.drain()
        finally:
            self.close()
