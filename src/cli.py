"""Command line entry point for the operator."""

import argparse
import sys
from typing import Sequence, TextIO

import yaml

from crd import crd_manifests


def print_crds(stream: TextIO) -> None:
    """Write every CRD as a YAML document, each preceded by ``---``."""
    for manifest in crd_manifests():
        stream.write("---\n")
        stream.write(yaml.safe_dump(manifest, sort_keys=False))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kafka-remapper-operator",
        description="KafkaPartitionRemapper operator",
    )
    subparsers = parser.add_subparsers(dest="command")

    crd_parser = subparsers.add_parser("crd", help="Print the CRD manifests as YAML")
    crd_parser.set_defaults(command="crd")

    run_parser = subparsers.add_parser("run", help="Run the operator")
    run_parser.set_defaults(command="run")

    parser.set_defaults(command="run")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "crd":
        print_crds(sys.stdout)
        return 0

    # Importing handlers registers them with kopf
    from handlers import main as run_operator

    run_operator()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
