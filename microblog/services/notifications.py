"""Comment notifications sent to post authors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape

from microblog.config import settings
from microblog.services.mailer import Mailer, MailerError, mailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationResult:
    ok: bool
    error: str | None = None


class CommentNotifier:
    """Tell a post author that a comment on their post was approved."""

    def __init__(self, transport: Mailer | None = None) -> None:
        self.transport = transport or mailer

    def notify_comment_approved(
        self,
        to_email: str,
        post_title: str,
        post_id: str,
        author_name: str,
        content: str,
    ) -> NotificationResult:
        post_url = settings.post_url(post_id)
        subject = f"New comment on your post: {post_title}"
        text = (
            f'A new comment has been approved on your post "{post_title}".\n\n'
            f"{author_name} commented:\n{content}\n\n"
            f"View it at {post_url}\n"
        )
        html = (
            "<p>A new comment has been approved on your post "
            f"<strong>&quot;{escape(post_title)}&quot;</strong>.</p>"
            f"<blockquote><p><strong>{escape(author_name)}</strong> commented:</p>"
            f"<p>{escape(content)}</p></blockquote>"
            f'<p><a href="{escape(post_url)}">View Comment</a></p>'
            "<p><small>This is an automated notification from Microblog.</small></p>"
        )
        try:
            self.transport.send(to_email, subject, html=html, text=text)
        except MailerError as exc:
            logger.warning(
                "Comment notification not sent",
                extra={"post_id": post_id, "reason": str(exc)},
            )
            return NotificationResult(ok=False, error=str(exc))
        return NotificationResult(ok=True)


comment_notifier = CommentNotifier()
