"""Export heap objects (or statistics about them) from a heap snapshot.

Loads a JSON heap snapshot, builds the object filters from the command line
and writes the report to the console or to a file.

Usage:
  uv run python examples/dump_heap.py examples/sample_heap.json
  uv run python examples/dump_heap.py examples/sample_heap.json --display-type Object --live
  uv run python examples/dump_heap.py examples/sample_heap.json --type-prefix Shop. --output-type csv -o heap.csv
  uv run python examples/dump_heap.py examples/sample_heap.json --display-type ObjectFragmentationSummary
"""

import argparse
import logging
import sys

from heapscope.bridge import HeapSnapshot
from heapscope.core import HeapExporter, HeapExportOptions, HeapscopeError, load_config

parser = argparse.ArgumentParser(description="Export heap objects from a snapshot.")
parser.add_argument("snapshot", help="Path to a JSON heap snapshot")
parser.add_argument("range", nargs="*", default=[], help="Optional start [end] address (hex)")
parser.add_argument("--display-type", default=None,
                    help="Address, ThinLock, String, StringSummary, Free, FreeSummary, "
                         "Object, ObjectSummary or ObjectFragmentationSummary")
parser.add_argument("--output-type", default=None, help="Console, CSV, Tab or Json")
parser.add_argument("-o", "--output-file", default=None, help="Write the report to this file")
parser.add_argument("--mt", default=None, help="Only objects of this type handle (hex)")
parser.add_argument("--type-prefix", default=None, help="Only objects whose type name starts with this")
parser.add_argument("--min-size", type=int, default=0)
parser.add_argument("--max-size", type=int, default=0)
parser.add_argument("--live", action="store_true", help="Only reachable objects")
parser.add_argument("--dead", action="store_true", help="Only unreachable objects")
parser.add_argument("--gen", default=None, help="gen0, gen1, gen2, loh, poh or foh")
parser.add_argument("--config", default=None, help="Path to heapscope.toml")
parser.add_argument("-v", "--verbose", action="store_true")
args = parser.parse_args()

config = load_config(args.config)
logging.basicConfig(level=logging.DEBUG if (args.verbose or config.verbose) else logging.WARNING)

# Command line flags override the [heap] section of the config file.
overrides = {
    "display_type": args.display_type,
    "output_type": args.output_type,
    "output_file": args.output_file,
    "method_table": args.mt,
    "type_prefix": args.type_prefix,
    "generation": args.gen,
    "min_size": args.min_size or None,
    "max_size": args.max_size or None,
    "live": args.live or None,
    "dead": args.dead or None,
    "memory_range": args.range or None,
}
options = HeapExportOptions(**{
    **config.heap.model_dump(),
    **{key: value for key, value in overrides.items() if value is not None},
})

exporter = HeapExporter(HeapSnapshot.from_json(args.snapshot), config=config)
try:
    result = exporter.dump_heap(options)
except HeapscopeError as exc:
    exporter.writer.write_error(f"{exc}\n")
    sys.exit(1)

if result.cancelled:
    exporter.writer.write_warning("Report cancelled.\n")
