"""Decoder for the line-delimited JSON stream of the Ollama generate API."""
import json
import logging
from enum import Enum
from typing import Iterable, Iterator, Optional, Union

from services.errors import GenerationError, LLMError

logger = logging.getLogger(__name__)

EVENT_PREFIX = "data:"


class StreamState(Enum):
    READING = "reading"
    DONE = "done"
    FAILED = "failed"


class StreamDecoder:
    """
    Turns a stream of generate-API lines into text fragments.

    Each line is expected to hold one complete JSON record with optional
    `response`, `done` and `error` fields. Lines that are blank or fail to
    parse are dropped silently. A record carrying `error` raises
    GenerationError; a record with `done` set ends the stream. Running out of
    lines without a `done` record is treated as a normal end.

    One decoder handles one stream; `state` reports where it stopped.
    """

    def __init__(self):
        self.state = StreamState.READING
        self.fragments = 0

    def decode(self, lines: Iterable[Union[str, bytes]]) -> Iterator[str]:
        """
        Yield the `response` fragments found in `lines`, in order.

        The line source is closed when decoding stops, whether it finished,
        failed or the consumer stopped iterating.

        Raises:
            GenerationError: If a record reports a backend error
        """
        try:
            for raw_line in lines:
                record = parse_line(raw_line)
                if record is None:
                    continue

                error = record.get("error")
                if error:
                    self.state = StreamState.FAILED
                    logger.error(f"Generation backend reported an error: {error}")
                    raise GenerationError(LLMError(
                        code="BACKEND_ERROR",
                        message=str(error),
                        details={"fragments": self.fragments}
                    ))

                fragment = record.get("response")
                if isinstance(fragment, str) and fragment:
                    self.fragments += 1
                    yield fragment

                if record.get("done"):
                    break

            self.state = StreamState.DONE
            logger.debug(f"Stream finished after {self.fragments} fragments")
        finally:
            close = getattr(lines, "close", None)
            if callable(close):
                close()


def parse_line(raw_line: Union[str, bytes]) -> Optional[dict]:
    """Parse one stream line into a record, or None if it carries nothing usable."""
    if isinstance(raw_line, bytes):
        raw_line = raw_line.decode("utf-8", errors="replace")

    line = raw_line.strip()
    if not line:
        return None

    if line.startswith(EVENT_PREFIX):
        line = line[len(EVENT_PREFIX):].strip()
        if not line:
            return None

    try:
        record = json.loads(line)
    except ValueError:
        logger.debug(f"Ignoring malformed stream line: {line[:80]!r}")
        return None

    if not isinstance(record, dict):
        return None
    return record
