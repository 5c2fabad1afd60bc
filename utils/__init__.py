# utils package
from .logger import get_logger, log_success
from .formatting import mention_span_body, render_mentions, split_message

__all__ = ["get_logger", "log_success", "mention_span_body", "render_mentions", "split_message"]
