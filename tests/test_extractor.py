# tests/test_extractor.py
import pytest

from codestream.services.extractor import ExtractorState, StreamExtractor, strip_fences


def feed_incrementally(text: str, step: int = 1):
    # Feeds growing prefixes of `text`, returning the extractor and every result seen.
    ex = StreamExtractor()
    results = []
    for end in range(step, len(text) + step, step):
        results.append((text[:end], ex.feed(text[:end])))
    return ex, results


def test_empty_input():
    ex = StreamExtractor()
    out = ex.feed("")
    assert out.reasoning == ""
    assert out.content == ""
    assert ex.state is ExtractorState.OUTSIDE_REASONING


@pytest.mark.parametrize("text", ["plain text", "<div>hi</div>", "a < b > c", "</think> stray close", "<thinking>no</thinking>"])
def test_text_without_start_marker_is_all_content(text):
    # Without a <think> start marker everything is content and reasoning stays empty.
    out = StreamExtractor().feed(text)
    assert out.content == text
    assert out.reasoning == ""


def test_concrete_chunk_scenario():
    # Markers split across chunk boundaries are still detected once complete.
    ex = StreamExtractor()
    for chunk in ["<thi", "nk>Hello ", "world</thi", "nk>Answer: 42"]:
        out = ex.append(chunk)
    assert out.reasoning == "Hello world"
    assert out.content == "Answer: 42"
    assert ex.reasoning_active is False
    assert ex.raw_text == "<think>Hello world</think>Answer: 42"


@pytest.mark.parametrize("step", [1, 2, 3, 5, 100])
def test_reasoning_block_any_chunking(step):
    # A<think>B</think>C yields content A+C and reasoning B however it is chunked.
    text = "Intro <think>step one, step two</think><html>done</html>"
    ex, results = feed_incrementally(text, step)
    final = results[-1][1]
    assert final.content == "Intro <html>done</html>"
    assert final.reasoning == "step one, step two"
    assert ex.state is ExtractorState.OUTSIDE_REASONING


def test_partial_reasoning_never_leaks_into_content():
    # Once the start marker is complete, content stays at the text before it until the end marker.
    text = "A<think>deliberating</think>C"
    start_done = text.index("<think>") + len("<think>")
    end_at = text.index("</think>")
    _, results = feed_incrementally(text)
    for prefix, out in results:
        if start_done <= len(prefix) <= end_at:
            assert out.content == "A"
            assert out.reasoning == prefix[start_done:]


def test_unterminated_reasoning_block():
    ex = StreamExtractor()
    out = ex.feed("x<think>abc")
    assert out.content == "x"
    assert out.reasoning == "abc"
    assert ex.state is ExtractorState.INSIDE_REASONING


def test_end_marker_before_start_marker_is_content():
    # A close marker with no open marker before it is ordinary text.
    ex = StreamExtractor()
    out = ex.feed("</think>a<think>b")
    assert out.content == "</think>a"
    assert out.reasoning == "b"
    assert ex.reasoning_active is True


def test_idempotent_feed():
    ex = StreamExtractor()
    text = "pre<think>mid</think>```html\n<p>x</p>\n```"
    first = ex.feed(text)
    second = ex.feed(text)
    assert first == second


def test_monotonic_growth_after_reasoning_and_during_reasoning():
    text = "A<think>thinking hard</think>final answer text"
    open_end = text.index("<think>") + len("<think>")
    close_end = text.index("</think>") + len("</think>")
    _, results = feed_incrementally(text)

    inside = [out for prefix, out in results if open_end <= len(prefix) < text.index("</think>")]
    for a, b in zip(inside, inside[1:]):
        assert b.reasoning.startswith(a.reasoning)
        assert b.content == a.content

    after = [out for prefix, out in results if len(prefix) >= close_end]
    for a, b in zip(after, after[1:]):
        assert b.content.startswith(a.content)
        assert b.reasoning == a.reasoning


@pytest.mark.parametrize("step", [1, 4, 1000])
def test_fence_stripped(step):
    _, results = feed_incrementally("```html\nX\n```", step)
    assert results[-1][1].content == "X\n"


def test_fence_in_middle_of_prose_untouched():
    text = "Use a ```html block like this ```html\nfor markup."
    assert StreamExtractor().feed(text).content == text


def test_trailing_fence_reappears_when_text_continues():
    # A trailing ``` is stripped only while it is at the literal end of the text.
    ex = StreamExtractor()
    assert ex.feed("<p>```").content == "<p>"
    assert ex.feed("<p>```js code").content == "<p>```js code"


def test_trailing_fence_followed_by_newline_is_kept():
    assert strip_fences("abc```\n") == "abc```\n"


def test_fence_after_reasoning_block():
    out = StreamExtractor().feed("<think>plan</think>```html\n<p>hi</p>\n```")
    assert out.reasoning == "plan"
    assert out.content == "<p>hi</p>\n"


def test_append_matches_feed():
    a, b = StreamExtractor(), StreamExtractor()
    for chunk in ["<th", "ink>r", "</think>", "c"]:
        a.append(chunk)
    assert a.last == b.feed("<think>r</think>c")
