import math
from collections import Counter
from dataclasses import dataclass, field
from typing import List

PREVIEW_WIDTH = 21
SEPARATOR = "|" + "=" * 64 + "|"


class Shannon:
    """
    Streaming Shannon entropy over bytes.
    Feed data with write(); entropy is recomputed from the byte histogram.
    """
    def __init__(self):
        self.counts = Counter()
        self.byte_count = 0

    def write(self, data):
        if isinstance(data, str):
            data = data.encode()
        self.counts.update(data)
        self.byte_count += len(data)
        return len(data)

    @property
    def entropy(self):
        """Bits of information per byte, 0.0 for no data."""
        if not self.byte_count:
            return 0.0
        total = self.byte_count
        return sum((c / total) * math.log2(total / c) for c in self.counts.values())

    @property
    def total_bits(self):
        """Information content of everything written so far."""
        return self.entropy * self.byte_count


@dataclass
class LineEntropy:
    number: int
    bits: float
    size: int
    preview: str

    @property
    def ratio(self):
        return self.bits / self.size if self.size else 0.0


@dataclass
class EntropyReport:
    total_bits: float = 0.0
    total_bytes: int = 0
    lines: List[LineEntropy] = field(default_factory=list)

    @property
    def ratio(self):
        return self.total_bits / self.total_bytes if self.total_bytes else 0.0

    def render(self):
        """Formats the report as a text table."""
        out = [
            f"| {'Line':<6} | {'Entropy':<8} | {'Bytes':<7} | {'Ratio':<5} | {'Starts with':<24} |",
            SEPARATOR,
        ]
        for line in self.lines:
            out.append(
                f"| {line.number:<6} | {line.bits:<8.2f} | {line.size:<7} | {line.ratio:<5.2f} "
                f"| {line.preview:<21}... |"
            )
        if self.lines:
            out.append(SEPARATOR)
        out.append(
            f"| {'TOTAL':<6} | {self.total_bits:<8.2f} | {self.total_bytes:<7} | {self.ratio:<5.2f} "
            f"| {'         ---':<24} |"
        )
        return "\n".join(out) + "\n"


def preview(line):
    """First PREVIEW_WIDTH characters of a line, unprintable ones shown as '.'."""
    text = line.decode("utf-8", errors="replace")[:PREVIEW_WIDTH]
    return "".join(c if c.isprintable() else "." for c in text)


def scan(data, report_level=0):
    """
    Computes entropy of `data` as a whole and, at report level 2,
    of every line on its own. Line breaks are not counted.
    Accepts raw bytes, so binary files are scanned as they are.
    """
    if isinstance(data, str):
        data = data.encode()
    report = EntropyReport()
    total = Shannon()

    for number, line in enumerate(data.splitlines(), start=1):
        total.write(line)
        if report_level == 2:
            ent = Shannon()
            ent.write(line)
            report.lines.append(LineEntropy(
                number=number,
                bits=ent.total_bits,
                size=len(line),
                preview=preview(line),
            ))

    report.total_bits = total.total_bits
    report.total_bytes = total.byte_count
    return report
