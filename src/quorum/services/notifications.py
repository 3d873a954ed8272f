"""Notification fan-out for content events.

Each ``on_*`` coroutine computes the recipient set for one event, removes the
acting user, and hands a :class:`~quorum.schemas.notification.Notification`
to the transport. Recipient sets are built from frozen snapshots captured
right after the triggering mutation committed, so delivery never touches the
database or holds a lock used by the mutation path.

Delivery is best-effort: failures and timeouts are logged and swallowed, and
the computed recipient set is returned either way.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from quorum.core.settings import settings
from quorum.models import Answer, Post
from quorum.models.post import POST_TYPE_ARTICLE, POST_TYPE_QUESTION
from quorum.repositories.store import ContentStore
from quorum.schemas.notification import Notification, NotificationPayload, NotificationRecipients
from quorum.services.formatting import remove_markdown_formatting, truncate
from quorum.services.mentions import extract_mentions
from quorum.services.transport import NotificationTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostSnapshot:
    """Point-in-time view of a post and the people interested in it."""

    id: int
    type: str
    title: str
    content: str
    author: str
    entities: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    commenters: frozenset[str] = frozenset()
    # Users following any of the post's tags or entities.
    followers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class AnswerSnapshot:
    id: int
    post_id: int
    content: str
    author: str
    commenters: frozenset[str] = frozenset()


def snapshot_post(store: ContentStore, post: Post) -> PostSnapshot:
    """Read the recipient sources of ``post`` from the store."""
    followers = store.get_users_for_tags(post.tag_names) | store.get_users_for_entities(
        post.entity_refs
    )
    return PostSnapshot(
        id=post.id,
        type=post.type,
        title=post.title,
        content=post.content,
        author=post.author,
        entities=frozenset(post.entity_refs),
        tags=frozenset(post.tag_names),
        commenters=frozenset(comment.author for comment in post.comments),
        followers=frozenset(followers),
    )


def snapshot_answer(answer: Answer) -> AnswerSnapshot:
    return AnswerSnapshot(
        id=answer.id,
        post_id=answer.post_id,
        content=answer.content,
        author=answer.author,
        commenters=frozenset(comment.author for comment in answer.comments),
    )


class NotificationManager:
    """Builds and delivers notifications for content events."""

    def __init__(
        self,
        transport: NotificationTransport | None = None,
        *,
        timeout_seconds: float | None = None,
        description_length: int | None = None,
        link_prefix: str | None = None,
    ) -> None:
        self.transport = transport
        self.timeout_seconds = (
            settings.notifications_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.description_length = description_length or settings.notification_description_length
        self.link_prefix = (
            settings.notification_link_prefix if link_prefix is None else link_prefix
        ).rstrip("/")

    # Events ---------------------------------------------------------------

    async def on_new_post(self, actor: str, post: PostSnapshot) -> set[str]:
        recipients = {*post.entities, *post.followers}
        if post.type == POST_TYPE_QUESTION:
            description = f"{actor} asked a question: {post.title}"
        elif post.type == POST_TYPE_ARTICLE:
            description = f"{actor} wrote an article: {post.title}"
        else:
            description = f"{actor} shared a link: {post.title}"
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title=f"New {post.type}",
                description=self.format_description(description),
                link=self.post_link(post),
                topic=f"New {post.type} about entity",
            ),
            event="new post",
        )

    async def on_new_post_comment(self, actor: str, post: PostSnapshot, comment: str) -> set[str]:
        recipients = {post.author, *post.entities, *post.commenters, *post.followers}
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title=f"New comment on {post.type}",
                description=self.format_description(f"{actor} commented on {post.type}: {comment}"),
                link=self.post_link(post),
                topic=f"New {post.type} comment",
                scope=f"{post.type}:comment:{post.id}",
            ),
            event="new post comment",
        )

    async def on_new_answer(self, actor: str, post: PostSnapshot, answer: AnswerSnapshot) -> set[str]:
        recipients = {post.author, *post.entities, *post.followers}
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title="New answer on question",
                description=self.format_description(f"{actor} answered question: {answer.content}"),
                link=self.answer_link(answer),
                topic="New answer on question",
                scope=f"question:answer:{post.id}:author",
            ),
            event="new answer",
        )

    async def on_answer_comment(
        self,
        actor: str,
        post: PostSnapshot,
        answer: AnswerSnapshot,
        comment: str,
    ) -> set[str]:
        recipients = {answer.author, *answer.commenters, *post.entities, *post.followers}
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title="New comment on answer",
                description=self.format_description(f"{actor} commented answer: {comment}"),
                link=self.answer_link(answer),
                topic="New answer comment",
                scope=f"answer:comment:{answer.id}",
            ),
            event="answer comment",
        )

    async def on_correct_answer(
        self,
        actor: str,
        post: PostSnapshot,
        answer: AnswerSnapshot,
    ) -> set[str]:
        recipients = {answer.author, post.author, *post.entities}
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title="Correct answer on question",
                description=self.format_description(
                    f"{actor} marked answer as correct: {answer.content}"
                ),
                link=self.answer_link(answer),
                topic="Correct answer on question",
                scope=f"question:correct:{post.id}:answer",
            ),
            event="correct answer",
        )

    async def on_mention(
        self,
        actor: str,
        resource: PostSnapshot | AnswerSnapshot,
        mentions: Iterable[str],
        already_sent: Iterable[str] = (),
        *,
        is_comment: bool = False,
    ) -> set[str]:
        """Notify mentioned users that the primary event did not already reach."""
        recipients = set(mentions) - set(already_sent)
        suffix = " comment" if is_comment else ""
        if isinstance(resource, PostSnapshot):
            description = f"{actor} mentioned you in a post{suffix}: {resource.title}"
            link = self.post_link(resource)
            scope = f"post:mention:{resource.id}"
        else:
            description = f"{actor} mentioned you in an answer{suffix}: {resource.content}"
            link = self.answer_link(resource)
            scope = f"answer:mention:{resource.id}"
        return await self._dispatch(
            actor,
            recipients,
            NotificationPayload(
                title="New mention",
                description=self.format_description(description),
                link=link,
                topic="New mention",
                scope=scope,
            ),
            event="mention",
        )

    # Event plus mentions ---------------------------------------------------

    async def notify_post_created(self, actor: str, post: PostSnapshot) -> set[str]:
        sent = await self.on_new_post(actor, post)
        mentioned = await self.on_mention(
            actor, post, extract_mentions([post.title, post.content]), sent
        )
        return sent | mentioned

    async def notify_post_commented(self, actor: str, post: PostSnapshot, comment: str) -> set[str]:
        sent = await self.on_new_post_comment(actor, post, comment)
        mentioned = await self.on_mention(
            actor, post, extract_mentions([comment]), sent, is_comment=True
        )
        return sent | mentioned

    async def notify_answer_created(
        self,
        actor: str,
        post: PostSnapshot,
        answer: AnswerSnapshot,
    ) -> set[str]:
        sent = await self.on_new_answer(actor, post, answer)
        mentioned = await self.on_mention(actor, answer, extract_mentions([answer.content]), sent)
        return sent | mentioned

    async def notify_answer_commented(
        self,
        actor: str,
        post: PostSnapshot,
        answer: AnswerSnapshot,
        comment: str,
    ) -> set[str]:
        sent = await self.on_answer_comment(actor, post, answer, comment)
        mentioned = await self.on_mention(
            actor, answer, extract_mentions([comment]), sent, is_comment=True
        )
        return sent | mentioned

    # Formatting -----------------------------------------------------------

    def format_description(self, description: str) -> str:
        return truncate(remove_markdown_formatting(description), self.description_length)

    def post_link(self, post: PostSnapshot) -> str:
        if post.type == POST_TYPE_QUESTION:
            section = "questions"
        elif post.type == POST_TYPE_ARTICLE:
            section = "articles"
        else:
            section = "links"
        return f"{self.link_prefix}/{section}/{post.id}"

    def answer_link(self, answer: AnswerSnapshot) -> str:
        return f"{self.link_prefix}/questions/{answer.post_id}#answer_{answer.id}"

    # Delivery -------------------------------------------------------------

    async def _dispatch(
        self,
        actor: str,
        recipients: set[str],
        payload: NotificationPayload,
        *,
        event: str,
    ) -> set[str]:
        recipients.discard(actor)
        if not recipients or self.transport is None:
            return recipients

        notification = Notification(
            recipients=NotificationRecipients(
                entity_ref=sorted(recipients),
                exclude_entity_ref=actor,
            ),
            payload=payload,
        )
        try:
            await asyncio.wait_for(self.transport.send(notification), timeout=self.timeout_seconds)
        except TimeoutError:
            logger.warning(
                "Notification for %s timed out after %.1fs", event, self.timeout_seconds
            )
        except Exception as exc:
            logger.error("Failed to send notification for %s: %s", event, exc, exc_info=True)
        return recipients
