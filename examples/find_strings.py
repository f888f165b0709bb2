"""Search string objects in a heap snapshot, and list the modules that define types.

Usage:
  uv run python examples/find_strings.py examples/sample_heap.json --contains example
  uv run python examples/find_strings.py examples/sample_heap.json --starts-with HTTPS --ignore-case
  uv run python examples/find_strings.py examples/sample_heap.json --modules System.
"""

import argparse
import sys

from heapscope.bridge import HeapSnapshot
from heapscope.core import HeapExporter, HeapscopeError, ModuleExportOptions, StringExportOptions

parser = argparse.ArgumentParser(description="Search strings in a heap snapshot.")
parser.add_argument("snapshot", help="Path to a JSON heap snapshot")
parser.add_argument("--starts-with", default=None)
parser.add_argument("--ends-with", default=None)
parser.add_argument("--contains", default=None)
parser.add_argument("--exact", default=None)
parser.add_argument("--ignore-case", action="store_true")
parser.add_argument("--output-type", default="Console", help="Console, CSV, Tab or Json")
parser.add_argument("--modules", nargs="?", const="", default=None,
                    help="List module types instead (optionally only modules with this name prefix)")
args = parser.parse_args()

exporter = HeapExporter(HeapSnapshot.from_json(args.snapshot))
try:
    if args.modules is not None:
        exporter.dump_modules(ModuleExportOptions(
            name=args.modules or None,
            types=True,
            output_type=args.output_type,
        ))
    else:
        exporter.dump_strings(StringExportOptions(
            starts_with=args.starts_with,
            ends_with=args.ends_with,
            contains=args.contains,
            exact=args.exact,
            ignore_case=args.ignore_case,
            output_type=args.output_type,
        ))
except HeapscopeError as exc:
    exporter.writer.write_error(f"{exc}\n")
    sys.exit(1)
