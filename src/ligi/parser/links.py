"""Tag-link filling: turn bare ``[[t/name]]`` markers into markdown links."""

from .tags import TAG_CLOSE, TAG_OPEN, iter_tag_spans


def tag_link(name: str, link_prefix: str) -> str:
    """Render a filled marker, e.g. ``[[t/proj]](index/tags/proj.md)``."""
    return f"{TAG_OPEN}{name}{TAG_CLOSE}({link_prefix}{name}.md)"


def fill_tag_links(text: str, link_prefix: str) -> tuple[str, int]:
    """Append a link target to every bare tag marker in ``text``.

    Markers already followed by ``(`` are left alone, so running this twice
    gives the same text. Markers in code or comments, and markers with an
    invalid tag body, are never touched.

    Args:
        text: Markdown content.
        link_prefix: Path prepended to ``<name>.md``. It should end with ``/``.

    Returns:
        Tuple of (new_text, number_of_links_filled).
    """
    parts: list[str] = []
    last = 0
    filled = 0

    for span in iter_tag_spans(text):
        if text.startswith("(", span.end):
            continue
        parts.append(text[last : span.start])
        parts.append(tag_link(span.name, link_prefix))
        last = span.end
        filled += 1

    if not filled:
        return text, 0

    parts.append(text[last:])
    return "".join(parts), filled
