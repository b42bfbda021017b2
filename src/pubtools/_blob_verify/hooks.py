import sys
from typing import Dict

from pubtools.pluggy import pm, hookspec

# Define hooks here for any events which may be of interest for any other
# projects in pubtools-*, or Pub.


@hookspec
def blob_verification_failed(digest: str, status: str) -> None:
    """Invoked for every blob which is missing or doesn't match its manifest.

    :param digest: Hex digest of the blob, without the algorithm prefix.
    :type digest: str
    :param status: Outcome of the verification, e.g. "missing" or "size-mismatch".
    :type status: str
    """


@hookspec
def blob_store_verified(store_root: str, tally: Dict[str, int]) -> None:
    """Invoked after all blobs referenced by manifests have been verified.

    :param store_root: Root directory of the verified blob store.
    :type store_root: str
    :param tally: Number of blobs per verification outcome, and number of manifests
                  which couldn't be processed under the key "failed-manifests".
    :type tally: dict[str, int]
    """


pm.add_hookspecs(sys.modules[__name__])
