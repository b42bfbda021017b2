import argparse
import logging
import os
from typing import Any, Dict, List, Optional

from pubtools.pluggy import task_context

from .blob_verifier import DEFAULT_MAX_IN_FLIGHT
from .verification_engine import BLOB_STORE_DIR, get_tree_roots, verify_blob_store
from .utils.misc import add_args_env_variables, get_log_level, setup_arg_parser

LOG = logging.getLogger("pubtools.blob_verify")

VERIFY_BLOBS_ARGS: Dict[Any, Any] = {
    ("-b", "--base-dir"): {
        "help": "Base directory of the mirror, containing the 'blobs-store' directory. "
        "Can be specified by env variable BLOB_VERIFY_BASE_DIR.",
        "required": False,
        "type": str,
        "env_variable": "BLOB_VERIFY_BASE_DIR",
    },
    ("-r", "--release-dir"): {
        "help": "Release directory to check, relative to the base directory.",
        "required": False,
        "type": str,
    },
    ("-o", "--operators-dir"): {
        "help": "Operator directory to check, relative to the base directory.",
        "required": False,
        "type": str,
    },
    ("--max-in-flight",): {
        "help": "Maximum number of blobs verified at the same time.",
        "required": False,
        "type": int,
        "default": DEFAULT_MAX_IN_FLIGHT,
    },
    ("--loglevel",): {
        "help": "Log level. Valid arguments are info, debug, trace.",
        "required": False,
        "type": str,
        "default": "info",
        "choices": ["info", "debug", "trace"],
    },
    ("--report-only",): {
        "help": "Exit with 0 even if some blobs are missing or corrupted.",
        "required": False,
        "type": bool,
    },
}


def verify_blob_verify_args(args: argparse.Namespace) -> None:
    """Verify the presence and correctness of input parameters."""
    if not args.base_dir:
        raise ValueError("Base directory must be specified")
    if not args.release_dir and not args.operators_dir:
        raise ValueError("At least one of release directory or operators directory must be set")
    if args.max_in_flight < 1:
        raise ValueError("Maximum number of blobs verified at once must be at least 1")

    blob_store = os.path.join(args.base_dir, BLOB_STORE_DIR)
    if not os.path.isdir(blob_store):
        raise ValueError("Blob store '%s' doesn't exist" % blob_store)
    for root in get_tree_roots(args.base_dir, args.release_dir, args.operators_dir):
        if root and not os.path.isdir(root):
            raise ValueError("Manifest directory '%s' doesn't exist" % root)


def setup_args() -> argparse.ArgumentParser:
    """Set up argparser without extra parameters, this method is used for auto doc generation."""
    return setup_arg_parser(VERIFY_BLOBS_ARGS)


def verify_blobs_main(sysargs: Optional[List[str]] = None) -> int:
    """
    Entrypoint for blob store verification.

    Returns (int):
        0 if all blobs were verified and all manifests processed, 1 otherwise. Always 0 with
        --report-only.
    """
    parser = setup_args()
    if sysargs:
        args = parser.parse_args(sysargs[1:])
    else:
        args = parser.parse_args()  # pragma: no cover"
    args = add_args_env_variables(args, VERIFY_BLOBS_ARGS)

    logging.basicConfig(level=get_log_level(args.loglevel))
    verify_blob_verify_args(args)

    with task_context():
        report = verify_blob_store(
            args.base_dir,
            release_dir=args.release_dir,
            operators_dir=args.operators_dir,
            max_in_flight=args.max_in_flight,
        )

    if report.ok or args.report_only:
        return 0
    return 1
