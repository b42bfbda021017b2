import logging

from pubtools._blob_verify.exceptions import UnparsableManifest
from pubtools._blob_verify.models import BlobReference, ManifestFailure, VerificationOutcome
from pubtools._blob_verify.outcome_reporter import OutcomeReporter
from pubtools._blob_verify.utils.misc import TRACE

AA = "aa" * 32
BB = "bb" * 32
CC = "cc" * 32
DD = "dd" * 32


def test_report_outcomes(caplog, hookspy):
    caplog.set_level(logging.INFO, logger="pubtools.blob_verify")
    reporter = OutcomeReporter()

    reporter.report_outcome(VerificationOutcome.verified(AA), "ocp-release")
    reporter.report_outcome(VerificationOutcome.missing(BB), "ocp-release")
    reporter.report_outcome(VerificationOutcome.size_mismatch(CC, 20, 19), "redhat/operator")
    reporter.report_outcome(VerificationOutcome.digest_mismatch(DD, DD, AA))

    assert caplog.messages == [
        "[ocp-release] blob verified %s" % AA,
        "[ocp-release] blob missing %s" % BB,
        "[redhat/operator] size mismatch %s: expected 20 bytes, found 19 bytes" % CC,
        "digest mismatch %s: content hashes to %s" % (DD, AA),
    ]
    assert [r.levelname for r in caplog.records] == ["INFO", "ERROR", "ERROR", "ERROR"]
    assert hookspy == [
        ("blob_verification_failed", {"digest": BB, "status": "missing"}),
        ("blob_verification_failed", {"digest": CC, "status": "size-mismatch"}),
        ("blob_verification_failed", {"digest": DD, "status": "digest-mismatch"}),
    ]
    assert reporter.tally == {
        "ok": 1,
        "size-mismatch": 1,
        "digest-mismatch": 1,
        "missing": 1,
        "failed-manifests": 0,
    }


def test_report_duplicate(caplog):
    caplog.set_level(TRACE, logger="pubtools.blob_verify")
    reporter = OutcomeReporter()

    reporter.report_duplicate(BlobReference(AA, 1), "ocp-release")

    assert caplog.messages == ["[ocp-release] blob already scheduled %s" % AA]
    assert reporter.outcomes == []


def test_report_failure(caplog):
    reporter = OutcomeReporter()
    failure = ManifestFailure(
        "redhat/operator", "/mirror/manifest.json", UnparsableManifest("bad json")
    )

    reporter.report_failure(failure)

    assert caplog.messages == [
        "[redhat/operator] manifest /mirror/manifest.json could not be processed: bad json"
    ]
    assert reporter.report.failures == [failure]
    assert reporter.tally["failed-manifests"] == 1


def test_summary(caplog):
    caplog.set_level(logging.INFO, logger="pubtools.blob_verify")
    reporter = OutcomeReporter()
    reporter.report_outcome(VerificationOutcome.verified(AA))
    reporter.report_outcome(VerificationOutcome.verified(BB))
    reporter.report_outcome(VerificationOutcome.missing(CC))
    caplog.clear()

    report = reporter.summary()

    assert caplog.messages == [
        "Verified 3 blobs: 2 ok, 1 missing, 0 size mismatches, 0 digest mismatches"
    ]
    assert not report.ok
    assert report.outcome_for(CC) == VerificationOutcome.missing(CC)
    assert report.outcome_for(DD) is None


def test_summary_with_failures(caplog):
    reporter = OutcomeReporter()
    reporter.report_failure(ManifestFailure("c", None, UnparsableManifest("x")))
    caplog.clear()

    report = reporter.summary()

    assert "1 manifests could not be processed" in caplog.messages
    assert not report.ok
