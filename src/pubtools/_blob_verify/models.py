import dataclasses
import enum
from typing import Dict, List, Optional, Union


@dataclasses.dataclass(frozen=True)
class Layer:
    """Descriptor of a config or layer blob as recorded in a manifest."""

    media_type: str
    size: int
    digest: str


@dataclasses.dataclass(frozen=True)
class Platform:
    """Platform a manifest list entry was built for."""

    architecture: str
    os: str
    variant: Optional[str] = None


@dataclasses.dataclass
class Manifest:
    """
    Image manifest, or an entry of a manifest list.

    Manifest list entries only carry media type, size, digest and platform, which is why
    config and layers are optional.
    """

    schema_version: Optional[int] = None
    digest: Optional[str] = None
    media_type: Optional[str] = None
    platform: Optional[Platform] = None
    size: Optional[int] = None
    config: Optional[Layer] = None
    layers: Optional[List[Layer]] = None


@dataclasses.dataclass
class ManifestList:
    """Manifest list (or OCI index) of a multi-platform image."""

    manifests: List[Manifest]
    schema_version: Optional[int] = None
    media_type: Optional[str] = None


ManifestNode = Union[Manifest, ManifestList]


@dataclasses.dataclass(frozen=True)
class BlobReference:
    """Blob referenced by a manifest, identified by its bare hex digest."""

    digest: str
    expected_size: int
    algorithm: str = "sha256"

    def __post_init__(self) -> None:
        """Reject negative sizes, they can't come from a valid manifest."""
        if self.expected_size < 0:
            raise ValueError("Expected size of blob %s is negative" % self.digest)


class OutcomeStatus(enum.Enum):
    """Classification of a single blob verification."""

    OK = "ok"
    SIZE_MISMATCH = "size-mismatch"
    DIGEST_MISMATCH = "digest-mismatch"
    MISSING = "missing"


@dataclasses.dataclass(frozen=True)
class VerificationOutcome:
    """
    Result of verifying one blob.

    For SIZE_MISMATCH, expected and actual are byte counts. For DIGEST_MISMATCH, they are
    hex digests. Both are None otherwise.
    """

    digest: str
    status: OutcomeStatus
    expected: Optional[Union[int, str]] = None
    actual: Optional[Union[int, str]] = None

    @property
    def ok(self) -> bool:
        """Whether the blob passed verification."""
        return self.status is OutcomeStatus.OK

    @classmethod
    def verified(cls, digest: str) -> "VerificationOutcome":
        return cls(digest, OutcomeStatus.OK)

    @classmethod
    def missing(cls, digest: str) -> "VerificationOutcome":
        return cls(digest, OutcomeStatus.MISSING)

    @classmethod
    def size_mismatch(cls, digest: str, expected: int, actual: int) -> "VerificationOutcome":
        return cls(digest, OutcomeStatus.SIZE_MISMATCH, expected, actual)

    @classmethod
    def digest_mismatch(cls, digest: str, expected: str, actual: str) -> "VerificationOutcome":
        return cls(digest, OutcomeStatus.DIGEST_MISMATCH, expected, actual)


@dataclasses.dataclass
class ManifestSource:
    """Parsed manifest together with the component it belongs to."""

    component: str
    node: ManifestNode
    path: Optional[str] = None


@dataclasses.dataclass
class ManifestFailure:
    """Manifest which couldn't be processed. Only this manifest is skipped."""

    component: str
    path: Optional[str]
    error: Exception


FAILED_MANIFESTS = "failed-manifests"


@dataclasses.dataclass
class VerificationReport:
    """Outcomes of a whole verification run."""

    outcomes: List[VerificationOutcome] = dataclasses.field(default_factory=list)
    failures: List[ManifestFailure] = dataclasses.field(default_factory=list)

    @property
    def tally(self) -> Dict[str, int]:
        """Count outcomes per status, plus the number of manifests which failed to process."""
        counts = {status.value: 0 for status in OutcomeStatus}
        for outcome in self.outcomes:
            counts[outcome.status.value] += 1
        counts[FAILED_MANIFESTS] = len(self.failures)
        return counts

    @property
    def ok(self) -> bool:
        """Whether every blob verified and every manifest was processed."""
        return not self.failures and all(outcome.ok for outcome in self.outcomes)

    def outcome_for(self, digest: str) -> Optional[VerificationOutcome]:
        """Get the outcome recorded for a digest, if any."""
        for outcome in self.outcomes:
            if outcome.digest == digest:
                return outcome
        return None
