"""Export GC handles from a heap snapshot.

Usage:
  uv run python examples/dump_handles.py examples/sample_heap.json
  uv run python examples/dump_handles.py examples/sample_heap.json --display-type Handles --kind strong
  uv run python examples/dump_handles.py examples/sample_heap.json --display-type Totals --output-type json
"""

import argparse
import sys

from heapscope.bridge import HeapSnapshot
from heapscope.core import GCHandleExportOptions, HeapExporter, HeapscopeError

parser = argparse.ArgumentParser(description="Export GC handles from a snapshot.")
parser.add_argument("snapshot", help="Path to a JSON heap snapshot")
parser.add_argument("--display-type", default="Statistics", help="Handles, Statistics or Totals")
parser.add_argument("--kind", default=None, help="Only handles of this kind (e.g. Strong, WeakShort)")
parser.add_argument("--output-type", default="Console", help="Console, CSV, Tab or Json")
parser.add_argument("-o", "--output-file", default=None, help="Write the report to this file")
args = parser.parse_args()

exporter = HeapExporter(HeapSnapshot.from_json(args.snapshot))
try:
    exporter.dump_gc_handles(GCHandleExportOptions(
        display_type=args.display_type,
        handle_kind=args.kind,
        output_type=args.output_type,
        output_file=args.output_file,
    ))
except HeapscopeError as exc:
    exporter.writer.write_error(f"{exc}\n")
    sys.exit(1)
