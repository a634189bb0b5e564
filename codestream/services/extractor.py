"""
Splits a streamed model response into reasoning text and final content.

Reasoning models wrap their deliberation in <think>...</think> inside the same
token stream as the answer, and the answer itself is sometimes wrapped in a
```html fence. Markers and fences can be split across any chunk boundary, so
every call re-derives both channels from the full text received so far instead
of resuming from a saved offset. That keeps the output a pure function of the
accumulated text: feeding the same text twice gives the same result, and a
trailing fence that turns out to be ordinary text reappears once more text
arrives.
"""

import re
from dataclasses import dataclass
from enum import Enum

from codestream.providers.base import REASONING_END, REASONING_START

_LEADING_FENCE = re.compile(r"\A```html\n")
_TRAILING_FENCE = re.compile(r"```\Z")


class ExtractorState(str, Enum):
    OUTSIDE_REASONING = "outside_reasoning"
    INSIDE_REASONING = "inside_reasoning"


@dataclass(frozen=True)
class Extraction:
    reasoning: str
    content: str


def strip_fences(content: str) -> str:
    content = _LEADING_FENCE.sub("", content, count=1)
    return _TRAILING_FENCE.sub("", content, count=1)


class StreamExtractor:
    """
    One instance per generation; not shared between sessions.

    feed() takes the whole accumulated text, append() takes the next chunk and
    accumulates it. Only the first start/end marker pair is treated as a
    reasoning block; an end marker with no start marker before it is content.
    """

    def __init__(self) -> None:
        self._raw = ""
        self._state = ExtractorState.OUTSIDE_REASONING
        self._last = Extraction(reasoning="", content="")

    @property
    def raw_text(self) -> str:
        return self._raw

    @property
    def state(self) -> ExtractorState:
        return self._state

    @property
    def reasoning_active(self) -> bool:
        return self._state is ExtractorState.INSIDE_REASONING

    @property
    def last(self) -> Extraction:
        return self._last

    def append(self, chunk: str) -> Extraction:
        return self.feed(self._raw + chunk)

    def feed(self, text: str) -> Extraction:
        self._raw = text
        start = text.find(REASONING_START)
        if start < 0:
            self._state = ExtractorState.OUTSIDE_REASONING
            reasoning, content = "", text
        else:
            body = start + len(REASONING_START)
            end = text.find(REASONING_END, body)
            if end < 0:
                self._state = ExtractorState.INSIDE_REASONING
                reasoning, content = text[body:], text[:start]
            else:
                self._state = ExtractorState.OUTSIDE_REASONING
                reasoning = text[body:end]
                content = text[:start] + text[end + len(REASONING_END):]

        self._last = Extraction(reasoning=reasoning, content=strip_fences(content))
        return self._last
