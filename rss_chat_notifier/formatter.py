"""Message formatting for RSS Chat Notifier."""

from .models import FeedItem

MESSAGE_TEMPLATE = """
    🆕 New Feed Item! 🆕
❗ {title}

🔎 {description}

🔗 {link}
    """


def format_message(item: FeedItem) -> str:
    """Render a feed item as a plain-text chat message."""
    return MESSAGE_TEMPLATE.format(
        title=item.title, description=item.description, link=item.link
    )
