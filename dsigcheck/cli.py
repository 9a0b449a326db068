"""
Command line entry point: ``dsigcheck [-v] [--strict] FILE``.
"""

import argparse
import logging
import os
import sys

from .exceptions import EngineInitError, InputError, NoSignatureFound, UsageError
from .validator import SignatureValidator, ValidationConfiguration, render_report

ENGINE_ENV_VAR = "DSIGCHECK_ENGINE"


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def get_parser():
    parser = ArgumentParser(
        prog="dsigcheck",
        description="Validate the XML Signatures embedded in an XML document.",
        epilog=f"The signature engine class can be overridden with the {ENGINE_ENV_VAR} environment variable.",
    )
    parser.add_argument("file", help="XML document to validate")
    parser.add_argument(
        "--strict", action="store_true", help="exit with status 1 if any signature fails core validation"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log diagnostics to stderr")
    return parser


def main(argv=None, environ=None):
    """
    Run the validator and return the process exit status: 2 for usage or fatal input errors, 1 for failed signatures
    when ``--strict`` is given, 0 otherwise.
    """
    parser = get_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return 2
    environ = os.environ if environ is None else environ

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = ValidationConfiguration()
    if environ.get(ENGINE_ENV_VAR):
        config = ValidationConfiguration(engine=environ[ENGINE_ENV_VAR])

    try:
        validator = SignatureValidator(config=config)
        outcomes = validator.validate_file(args.file)
    except (InputError, NoSignatureFound, EngineInitError) as e:
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return 2

    print(render_report(outcomes))
    if args.strict and not all(outcome.core_valid for outcome in outcomes):
        return 1
    return 0
