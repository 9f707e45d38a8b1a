"""CLI entry point: run `hydrolang file.hyd` or `python -m hydrolang file.hyd`."""

import sys
from pathlib import Path
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    import argparse
    import logging
    from .compiler.driver import NetworkCompiler
    from .reporting import describe_statements, format_results
    from .runtime.runtime import HydroRuntime
    from .utils.config import SOURCE_FILE_EXTENSION
    from .utils.io_utils import read_source_file

    parser = argparse.ArgumentParser(prog="hydrolang", description="Evaluate a Hydrolang (.hyd) river network.")
    parser.add_argument("file", type=Path, help=f"Path to {SOURCE_FILE_EXTENSION} source file")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not echo declarations")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s",
    )

    path = args.file.resolve()
    if not path.exists():
        sys.stderr.write(f"hydrolang: error: file not found: {path}\n")
        return 1
    if not path.is_file():
        sys.stderr.write(f"hydrolang: error: not a file: {path}\n")
        return 1

    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"hydrolang: error: could not read file: {e}\n")
        return 1

    compiled = NetworkCompiler().compile(source, str(path))
    if compiled.program is None:
        sys.stderr.write(compiled.reporter.format_all_errors() + "\n")
        return 1

    if not args.quiet:
        for line in describe_statements(compiled.program.statements):
            print(line)

    result = HydroRuntime().execute(compiled.network, compiled.reporter)
    for line in format_results(result):
        print(line)

    if compiled.reporter.has_errors():
        sys.stderr.write(compiled.reporter.format_all_errors() + "\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
