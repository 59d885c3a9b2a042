"""
Split a raw serial byte stream into NMEA text lines.

Serial reads return arbitrary chunks, so a sentence is frequently cut in two. The
splitter keeps the unterminated tail of each chunk and prepends it to the next one.
"""
import re
from typing import List, Optional


_EOL = re.compile(r'\r\n|\r|\n')


class LineSplitter:
    def __init__(self, encoding: str = 'ascii', max_line: int = 1024):
        self.encoding = encoding
        self.max_line = max_line
        self._pending = ""
        self.discarded = 0  # Oversized partial lines thrown away

    def feed(self, chunk: bytes) -> List[str]:
        """
        Add a chunk of bytes and return the complete, non-empty lines it finished.
        """
        if not chunk:
            return []

        text = self._pending + chunk.decode(self.encoding, errors='replace')
        # A '\r\n' pair split across chunks only yields an extra empty line
        parts = _EOL.split(text)
        self._pending = parts.pop()

        if len(self._pending) > self.max_line:
            self._pending = ""
            self.discarded += 1

        lines = []
        for part in parts:
            line = part.strip()
            if line:
                lines.append(line)
        return lines

    def flush(self) -> Optional[str]:
        """Return and forget the buffered partial line, if any."""
        line = self._pending.strip()
        self._pending = ""
        return line or None

    def reset(self):
        self._pending = ""
