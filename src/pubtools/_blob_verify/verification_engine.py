import logging
import os
from typing import Callable, Iterable, List, Optional

from pubtools.pluggy import pm

from .blob_verifier import DEFAULT_MAX_IN_FLIGHT, BoundedVerifier
from .exceptions import UnresolvedManifest
from .manifest_tree import ManifestTree, discover_manifests
from .models import ManifestFailure, ManifestSource, VerificationReport
from .outcome_reporter import OutcomeReporter
from .reference_extractor import ManifestResolver, extract_references
from .utils.misc import log_step
from .work_queue import BlobWorkQueue

LOG = logging.getLogger("pubtools.blob_verify")

BLOB_STORE_DIR = "blobs-store"
RELEASE_DIR = "release"
OPERATORS_DIR = "operators"


def verify_manifests(
    store_root: str,
    sources: Iterable[ManifestSource],
    resolver: Optional[ManifestResolver] = None,
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
    reporter: Optional[OutcomeReporter] = None,
    queue: Optional[BlobWorkQueue] = None,
    on_extracted: Optional[Callable[[ManifestSource], None]] = None,
) -> VerificationReport:
    """
    Verify all blobs referenced by manifests.

    Manifests are traversed in order; each blob digest is verified only once, no matter how
    many manifests reference it. A manifest which can't be processed is reported as
    a failure and skipped, other manifests are still verified.

    Args:
        store_root (str):
            Root directory of the blob store.
        sources ([ManifestSource]):
            Parsed manifests with their components.
        resolver (callable):
            Resolves manifest list entries to manifest documents.
        max_in_flight (int):
            Maximum number of blobs verified at the same time.
        reporter (OutcomeReporter):
            Reporter which receives outcomes. A new one is created if not specified.
        queue (BlobWorkQueue):
            Deduplicating queue, may be shared by multiple calls. A new one is created if not
            specified.
        on_extracted (callable):
            Called with each manifest whose references were all extracted.
    Returns (VerificationReport):
        Outcomes and failures reported during the run.
    """
    reporter = reporter or OutcomeReporter()
    queue = queue if queue is not None else BlobWorkQueue()

    with BoundedVerifier(store_root, max_in_flight, reporter.report_outcome) as verifier:
        for source in sources:
            LOG.debug("component: %s", source.component)
            try:
                references = extract_references(source.node, resolver)
            except (ValueError, UnresolvedManifest) as e:
                reporter.report_failure(ManifestFailure(source.component, source.path, e))
                continue
            if on_extracted:
                on_extracted(source)

            for reference in references:
                if queue.admit(reference):
                    verifier.submit(reference, source.component)
                else:
                    reporter.report_duplicate(reference, source.component)

    return reporter.report


def _verify_tree(
    store_root: str,
    tree: ManifestTree,
    max_in_flight: int,
    reporter: OutcomeReporter,
    queue: BlobWorkQueue,
) -> None:
    for failure in tree.failures:
        reporter.report_failure(failure)
    verify_manifests(
        store_root,
        tree.sources(),
        tree.resolve,
        max_in_flight,
        reporter,
        queue,
        on_extracted=tree.mark_resolved,
    )


@log_step("Verify release blobs")
def verify_release_blobs(
    store_root: str,
    release_root: str,
    max_in_flight: int,
    reporter: OutcomeReporter,
    queue: BlobWorkQueue,
) -> None:
    """Verify blobs of all manifests in a release tree."""
    _verify_tree(store_root, discover_manifests(release_root), max_in_flight, reporter, queue)


@log_step("Verify operator blobs")
def verify_operator_blobs(
    store_root: str,
    operators_root: str,
    max_in_flight: int,
    reporter: OutcomeReporter,
    queue: BlobWorkQueue,
) -> None:
    """Verify blobs of all manifests in an operator catalog tree."""
    _verify_tree(store_root, discover_manifests(operators_root), max_in_flight, reporter, queue)


def get_tree_roots(
    base_dir: str, release_dir: Optional[str] = None, operators_dir: Optional[str] = None
) -> List[Optional[str]]:
    """
    Get paths of the release and operator manifest trees.

    Args:
        base_dir (str):
            Base directory of the mirror.
        release_dir (str):
            Release directory, relative to the base directory.
        operators_dir (str):
            Operator catalog directory, relative to the base directory.
    Returns ([str]):
        Release tree root (or None) and operator tree root (or None).
    """
    release_root = os.path.join(base_dir, release_dir, RELEASE_DIR) if release_dir else None
    operators_root = (
        os.path.join(base_dir, operators_dir, OPERATORS_DIR) if operators_dir else None
    )
    return [release_root, operators_root]


def verify_blob_store(
    base_dir: str,
    release_dir: Optional[str] = None,
    operators_dir: Optional[str] = None,
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
) -> VerificationReport:
    """
    Verify the blob store of a mirror against its release and operator manifests.

    Blobs are stored in <base_dir>/blobs-store, release manifests in
    <base_dir>/<release_dir>/release and operator manifests in
    <base_dir>/<operators_dir>/operators. A blob shared by both trees is verified once.

    Args:
        base_dir (str):
            Base directory of the mirror.
        release_dir (str):
            Release directory to verify, relative to the base directory.
        operators_dir (str):
            Operator catalog directory to verify, relative to the base directory.
        max_in_flight (int):
            Maximum number of blobs verified at the same time.
    Returns (VerificationReport):
        Outcomes of the run.
    """
    store_root = os.path.join(base_dir, BLOB_STORE_DIR)
    release_root, operators_root = get_tree_roots(base_dir, release_dir, operators_dir)
    reporter = OutcomeReporter()
    queue = BlobWorkQueue()

    if release_root:
        verify_release_blobs(store_root, release_root, max_in_flight, reporter, queue)
    if operators_root:
        verify_operator_blobs(store_root, operators_root, max_in_flight, reporter, queue)

    report = reporter.summary()
    pm.hook.blob_store_verified(store_root=store_root, tally=report.tally)
    return report
