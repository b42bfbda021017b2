import logging
from typing import Dict, List, Optional

from pubtools.pluggy import pm

from .models import (
    BlobReference,
    ManifestFailure,
    OutcomeStatus,
    VerificationOutcome,
    VerificationReport,
)
from .utils.misc import TRACE

LOG = logging.getLogger("pubtools.blob_verify")


class OutcomeReporter:
    """Log every verification outcome and keep the tally of a run."""

    def __init__(self) -> None:
        """Initialize."""
        self.report = VerificationReport()

    @property
    def tally(self) -> Dict[str, int]:
        """Counts of outcomes reported so far."""
        return self.report.tally

    @property
    def outcomes(self) -> List[VerificationOutcome]:
        return self.report.outcomes

    def report_outcome(self, outcome: VerificationOutcome, component: Optional[str] = None) -> None:
        """
        Log outcome of a blob verification.

        Args:
            outcome (VerificationOutcome):
                Outcome to log.
            component (str):
                Component whose manifest referenced the blob first.
        """
        self.report.outcomes.append(outcome)
        prefix = "[%s] " % component if component else ""

        if outcome.status is OutcomeStatus.OK:
            LOG.info("%sblob verified %s", prefix, outcome.digest)
            return

        if outcome.status is OutcomeStatus.MISSING:
            LOG.error("%sblob missing %s", prefix, outcome.digest)
        elif outcome.status is OutcomeStatus.SIZE_MISMATCH:
            LOG.error(
                "%ssize mismatch %s: expected %s bytes, found %s bytes",
                prefix,
                outcome.digest,
                outcome.expected,
                outcome.actual,
            )
        else:
            LOG.error(
                "%sdigest mismatch %s: content hashes to %s",
                prefix,
                outcome.digest,
                outcome.actual,
            )
        pm.hook.blob_verification_failed(digest=outcome.digest, status=outcome.status.value)

    def report_duplicate(self, reference: BlobReference, component: Optional[str] = None) -> None:
        """Log a blob which was skipped because it's already scheduled for verification."""
        LOG.log(TRACE, "[%s] blob already scheduled %s", component or "", reference.digest)

    def report_failure(self, failure: ManifestFailure) -> None:
        """
        Log a manifest which couldn't be processed.

        Args:
            failure (ManifestFailure):
                Manifest and the error which occurred while processing it.
        """
        self.report.failures.append(failure)
        LOG.error(
            "[%s] manifest %s could not be processed: %s",
            failure.component,
            failure.path or "",
            failure.error,
        )

    def summary(self) -> VerificationReport:
        """
        Log the tally of the run.

        Returns (VerificationReport):
            All outcomes and failures reported so far.
        """
        tally = self.tally
        LOG.info(
            "Verified %d blobs: %d ok, %d missing, %d size mismatches, %d digest mismatches",
            len(self.report.outcomes),
            tally[OutcomeStatus.OK.value],
            tally[OutcomeStatus.MISSING.value],
            tally[OutcomeStatus.SIZE_MISMATCH.value],
            tally[OutcomeStatus.DIGEST_MISMATCH.value],
        )
        if self.report.failures:
            LOG.error("%d manifests could not be processed", len(self.report.failures))
        return self.report
