"""Cancel a long heap scan with Ctrl-C and keep the rows written so far.

Generates a large synthetic heap one object at a time and streams every
object address to a CSV file.  Nothing but the current object is held in
memory.  Pressing Ctrl-C cancels the scan cooperatively: the rows already
written stay in the file and the report ends without a footer.

Usage:
  uv run python examples/cancel_long_scan.py /tmp/addresses.csv
  uv run python examples/cancel_long_scan.py /tmp/addresses.csv --objects 50000000
"""

import argparse
import signal

from heapscope.bridge import HeapSnapshot, ObjectDescriptor
from heapscope.core import CancellationToken, HeapExporter, HeapExportOptions

BASE_ADDRESS = 0x10000000
OBJECT_SIZE = 32
TYPE_HANDLE = 0x7FF8A1B30000


class SyntheticHeap(HeapSnapshot):
    """Heap walker that produces its objects on demand."""

    def __init__(self, count):
        super().__init__(type_names={TYPE_HANDLE: "Synthetic.Item"})
        self.count = count

    def enumerate_objects(self, token=None):
        for i in range(self.count):
            if token is not None:
                token.throw_if_cancelled()
            yield ObjectDescriptor(BASE_ADDRESS + i * OBJECT_SIZE, TYPE_HANDLE, OBJECT_SIZE)


parser = argparse.ArgumentParser(description="Cancellable heap scan.")
parser.add_argument("output_file", help="CSV file to write addresses to")
parser.add_argument("--objects", type=int, default=1_000_000, help="Number of synthetic objects")
args = parser.parse_args()

token = CancellationToken()
signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())

exporter = HeapExporter(SyntheticHeap(args.objects), token=token)
result = exporter.dump_heap(HeapExportOptions(
    display_type="Address",
    output_type="csv",
    output_file=args.output_file,
))

print(f"{result.outcome.value}: scanned {result.items_scanned:,} objects, wrote {result.rows_written:,} rows")
