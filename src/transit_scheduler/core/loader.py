"""Incremental decoding of the timetable dataset into a shared store."""

import codecs
import json
import logging
import re
import threading
from typing import Any, BinaryIO

from pydantic import ValidationError as PydanticValidationError

from .exceptions import CorruptDatasetError
from .models import Stop
from .normalizer import normalize_all
from .store import TimeTableStore

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PROGRESS_EVERY = 1000

_WHITESPACE = re.compile(r"[ \t\n\r]*")
# Truncated numbers, literals and escapes fail this close to the buffer end
_TRUNCATION_WINDOW = 16


class JSONArrayReader:
    """Decode a top-level JSON array one element at a time.

    Input is read in chunks from a binary stream, so elements become
    available before the whole document has been read.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = CHUNK_SIZE):
        self._stream = stream
        self._chunk_size = chunk_size
        self._decoder = json.JSONDecoder()
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._pos = 0
        self._eof = False
        self.count = 0

    def _fill(self) -> bool:
        """Read the next chunk into the buffer. False once input is exhausted."""
        if self._eof:
            return False

        chunk = self._stream.read(self._chunk_size)
        try:
            if chunk:
                text = self._utf8.decode(chunk)
            else:
                self._eof = True
                text = self._utf8.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise CorruptDatasetError(f"Dataset is not valid UTF-8: {e}", self.count) from e

        # Drop the consumed prefix
        self._buffer = self._buffer[self._pos :] + text
        self._pos = 0
        return not self._eof or bool(text)

    def _peek(self) -> str | None:
        """Next non-whitespace character, or None at end of input."""
        while True:
            self._pos = _WHITESPACE.match(self._buffer, self._pos).end()
            if self._pos < len(self._buffer):
                return self._buffer[self._pos]
            if not self._fill():
                return None

    def _expect(self, char: str) -> None:
        found = self._peek()
        if found != char:
            where = repr(found) if found is not None else "end of input"
            raise CorruptDatasetError(f"Expected {char!r}, found {where}", self.count)
        self._pos += 1

    def open_array(self) -> None:
        self._expect("[")

    def more(self) -> bool:
        """Check whether another element follows, consuming its separator."""
        char = self._peek()
        if char is None:
            raise CorruptDatasetError("Unexpected end of input inside array", self.count)
        if char == "]":
            return False
        if self.count:
            if char != ",":
                raise CorruptDatasetError(f"Expected ',' or ']', found {char!r}", self.count)
            self._pos += 1
        return True

    def _may_continue(self, error: json.JSONDecodeError) -> bool:
        """Whether more input could complete the element that failed to decode."""
        if error.msg.startswith("Unterminated string"):
            return True
        return len(self._buffer) - error.pos <= _TRUNCATION_WINDOW

    def decode(self) -> Any:
        """Decode the next array element, which must be a JSON object."""
        char = self._peek()
        if char != "{":
            where = repr(char) if char is not None else "end of input"
            raise CorruptDatasetError(f"Expected an object, found {where}", self.count)

        while True:
            try:
                value, end = self._decoder.raw_decode(self._buffer, self._pos)
            except json.JSONDecodeError as e:
                if self._may_continue(e) and self._fill():
                    continue
                raise CorruptDatasetError(f"Malformed element: {e.msg}", self.count) from e
            break

        self._pos = end
        self.count += 1
        return value

    def close_array(self) -> None:
        self._expect("]")
        if self._peek() is not None:
            raise CorruptDatasetError("Trailing data after array", self.count)


def decode_stop(raw: Any, index: int) -> Stop:
    """Validate one decoded element as a Stop."""
    try:
        return Stop.model_validate(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise CorruptDatasetError(
            f"Invalid stop at {location or 'root'}: {first['msg']}", index
        ) from e


class IncrementalLoader:
    """Stream a dataset into a store, normalizing once at completion."""

    def __init__(self, store: TimeTableStore, chunk_size: int = CHUNK_SIZE):
        self.store = store
        self.chunk_size = chunk_size

    def load(self, stream: BinaryIO) -> TimeTableStore:
        """Decode every element of ``stream`` into the store on this thread.

        Raises:
            CorruptDatasetError: If the dataset is malformed. The error is
                also recorded on the store, which never becomes complete.
        """
        logger.info("Loading timetable dataset")
        try:
            reader = JSONArrayReader(stream, self.chunk_size)
            reader.open_array()
            while reader.more():
                index = reader.count
                self.store.append(decode_stop(reader.decode(), index))
                if reader.count % PROGRESS_EVERY == 0:
                    logger.debug(f"Decoded {reader.count} stops")
            reader.close_array()
        except CorruptDatasetError as e:
            logger.error(f"Corrupt timetable dataset: {e}")
            self.store.fail(e)
            raise
        except OSError as e:
            logger.error(f"Failed to read timetable dataset: {e}")
            self.store.fail(e)
            raise

        # Only this thread writes, so the snapshot is the full decoded set
        self.store.mark_complete(normalize_all(self.store.snapshot().stops))
        return self.store

    def start(self, stream: BinaryIO) -> threading.Thread:
        """Load ``stream`` on a daemon thread, closing it when done."""
        thread = threading.Thread(
            target=self._run, args=(stream,), name="timetable-loader", daemon=True
        )
        thread.start()
        return thread

    def _run(self, stream: BinaryIO) -> None:
        try:
            self.load(stream)
        except (CorruptDatasetError, OSError):
            # Recorded on the store for readers waiting on completion
            return
        finally:
            stream.close()
