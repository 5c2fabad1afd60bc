"""
utils/formatting.py
===================
Helpers for outbound chat text.

- ``mention_span_body`` builds a body out of user tags and records where
  each tag starts, so platforms can turn the plain ``@name`` text back into
  a real mention.
- ``render_mentions`` does that substitution for a given mention syntax.
- ``split_message`` keeps bodies under Discord's 2000-character limit.
"""
from typing import Callable, Dict, Iterable, List, Tuple

from bot.platform import Mention

# Discord's maximum message length
DISCORD_MAX_LENGTH = 2000


def mention_span_body(header: str, tags: Dict[str, str]) -> Tuple[str, List[Mention]]:
    """Append every tag in *tags* (user ID → tag) to *header*, space separated.

    Returns the body and one :class:`Mention` per tag whose ``from_index`` is
    the offset of that tag inside the body.
    """
    body = header
    mentions: List[Mention] = []
    for user_id, tag in tags.items():
        mentions.append(Mention(id=user_id, tag=tag, from_index=len(body)))
        body += tag + " "
    if tags:
        body = body[:-1]
    return body, mentions


def render_mentions(
    body: str,
    mentions: Iterable[Mention],
    fmt: Callable[[Mention], str],
) -> str:
    """Replace each mention's tag span in *body* with ``fmt(mention)``.

    Spans are replaced right to left so earlier offsets stay valid.  A
    mention whose tag is not found at its ``from_index`` is left alone.
    """
    for mention in sorted(mentions, key=lambda m: m.from_index, reverse=True):
        start = mention.from_index
        end = start + len(mention.tag)
        if start < 0 or body[start:end] != mention.tag:
            continue
        body = body[:start] + fmt(mention) + body[end:]
    return body


def split_message(text: str, max_length: int = DISCORD_MAX_LENGTH) -> List[str]:
    """Split *text* into chunks of at most *max_length* characters.

    Splits on newlines where possible and hard-splits lines that are too long
    on their own.
    """
    if len(text) <= max_length:
        return [text]

    chunks: List[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        if len(current) + len(line) > max_length:
            if current:
                chunks.append(current)
                current = ""
            while len(line) > max_length:
                chunks.append(line[:max_length])
                line = line[max_length:]
        current += line

    if current:
        chunks.append(current)
    return chunks
