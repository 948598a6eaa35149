"""Fan-out writer used while streaming completion deltas.

One logical write reaches every target in the same call, so the caller-visible
stream and the accumulation buffer always see identical text in identical order.
"""

import io


class TeeWriter:
    """Write each chunk to all targets, in target order."""

    def __init__(self, *targets):
        self.targets = [t for t in targets if t is not None]

    def write(self, text: str) -> int:
        if not text:
            return 0
        for target in self.targets:
            target.write(text)
            flush = getattr(target, "flush", None)
            if flush is not None:
                flush()
        return len(text)


class ContentAccumulator:
    """Buffer for one streamed completion, optionally echoed to a caller sink."""

    def __init__(self, sink=None):
        self._buffer = io.StringIO()
        self._writer = TeeWriter(sink, self._buffer)

    def write(self, text: str) -> int:
        return self._writer.write(text)

    def finish(self) -> str:
        """Terminate the turn with a newline and return the accumulated content."""
        self._writer.write("\n")
        return self._buffer.getvalue()
