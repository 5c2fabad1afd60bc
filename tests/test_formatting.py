from bot.platform import Mention
from utils.formatting import mention_span_body, render_mentions, split_message


def test_mention_span_body_records_tag_offsets():
    body, mentions = mention_span_body("Hi: ", {"1": "@Ann", "2": "@Bo"})

    assert body == "Hi: @Ann @Bo"
    assert mentions == [Mention("1", "@Ann", 4), Mention("2", "@Bo", 9)]


def test_mention_span_body_without_tags():
    assert mention_span_body("Hi: ", {}) == ("Hi: ", [])


def test_render_mentions_skips_stale_offsets():
    body = "@Ann and @Bo"
    mentions = [Mention("1", "@Ann", 0), Mention("2", "@Bo", 9), Mention("3", "@Cy", 2)]

    assert render_mentions(body, mentions, lambda m: f"<@{m.id}>") == "<@1> and <@2>"


def test_split_message_hard_splits_long_lines():
    assert split_message("short") == ["short"]
    assert split_message("x" * 25, max_length=10) == ["x" * 10, "x" * 10, "x" * 5]
