"""Data access for posts, their comments, votes, favorites and views."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement, and_, delete, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from quorum.core.exceptions import (
    InvalidInputError,
    InvariantViolationError,
    ResourceNotFoundError,
)
from quorum.db.time import utcnow
from quorum.models import (
    Answer,
    Attachment,
    CollectionPost,
    Comment,
    Entity,
    Post,
    PostFavorite,
    PostView,
    PostVote,
    Tag,
)
from quorum.models.post import POST_TYPE_LINK, POST_TYPES, post_entity, post_tag
from quorum.permissions.criteria import Criteria
from quorum.permissions.resources import ResourceType

from .base import (
    RepositoryBase,
    normalize_labels,
    date_range_clauses,
    require_text,
    search_pattern,
    validate_order,
)
from .options import PostOptions, Posts

__all__ = ["PostRepository"]


def answers_count_expression():  # type: ignore[no-untyped-def]
    return (
        select(func.count(Answer.id))
        .where(Answer.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )


def _post_order_columns() -> dict[str, ColumnElement]:
    answers_count = answers_count_expression()
    return {
        "views": Post.views,
        "score": Post.score,
        "answers_count": answers_count,
        "answersCount": answers_count,
        "created": Post.created,
        "updated": func.coalesce(Post.updated, Post.created),
        "trend": Post.trend,
    }


class PostRepository(RepositoryBase):
    """Posts and everything hanging directly off a post."""

    # Reads ----------------------------------------------------------------

    def get_posts(
        self,
        user_ref: str,
        options: PostOptions | None = None,
        criteria: Criteria | None = None,
    ) -> Posts:
        """Return one page of posts and the total number of matches.

        Args:
            user_ref: Acting user; needed for the ``favorite`` filter.
            options: Filters, ordering and pagination.
            criteria: Permission criteria restricting visible rows.
        """
        options = options or PostOptions()
        clauses = self._post_filters(user_ref, options)
        if criteria is not None:
            clauses.append(self.criteria_clause(criteria, ResourceType.POST))

        total = self.session.scalar(select(func.count(Post.id)).where(*clauses)) or 0

        stmt = select(Post).where(*clauses)
        stmt = stmt.order_by(*self._post_ordering(options))
        stmt = stmt.options(*self._post_load_options(options))
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)

        posts = list(self.session.scalars(stmt).unique())
        if options.include_trend and posts:
            self._refresh_trends(posts)
        return Posts(posts=posts, total=total)

    def get_post(self, user_ref: str, post_id: int, record_view: bool = True) -> Post | None:
        """Return a post, counting one view when ``record_view`` is set."""
        post = self.session.get(Post, post_id)
        if post is None:
            return None
        if record_view:
            self._record_view(post, user_ref)
        return post

    def get_post_by_answer_id(
        self,
        user_ref: str,
        answer_id: int,
        record_view: bool = True,
    ) -> Post | None:
        post_id = self.session.scalar(select(Answer.post_id).where(Answer.id == answer_id))
        if post_id is None:
            return None
        return self.get_post(user_ref, post_id, record_view)

    def get_post_comment(self, comment_id: int) -> Comment | None:
        return self.session.scalar(
            select(Comment).where(Comment.id == comment_id, Comment.post_id.is_not(None))
        )

    # Mutations ------------------------------------------------------------

    def create_post(
        self,
        *,
        user_ref: str,
        title: str,
        content: str,
        type: str = "question",
        tags: list[str] | None = None,
        entities: list[str] | None = None,
        images: list[int] | None = None,
        anonymous: bool = False,
        url: str | None = None,
        header_image: str | None = None,
        created: datetime | None = None,
    ) -> Post:
        """Insert a new post together with its tags and entities."""
        if type not in POST_TYPES:
            raise InvalidInputError(f"Unknown post type '{type}'")
        if type == POST_TYPE_LINK and not (url or "").strip():
            raise InvalidInputError("Link posts require a url")

        post = Post(
            author=user_ref,
            type=type,
            title=require_text(title, "title"),
            content=require_text(content, "content"),
            url=url,
            header_image=header_image,
            anonymous=anonymous,
            created=created or utcnow(),
        )
        self.session.add(post)
        post.tags = self._resolve_tags(tags)
        post.entities = self._resolve_entities(entities)
        self.session.flush()
        self._bind_images(images, post_id=post.id)
        self._commit()
        return post

    def update_post(
        self,
        *,
        user_ref: str,
        post_id: int,
        title: str,
        content: str,
        tags: list[str] | None = None,
        entities: list[str] | None = None,
        images: list[int] | None = None,
        url: str | None = None,
        header_image: str | None = None,
        criteria: Criteria | None = None,
    ) -> Post:
        """Rewrite a post's editable fields.

        Raises:
            ResourceNotFoundError: If the post does not exist.
            ForbiddenError: If the caller is not allowed to edit it.
        """
        post = self._get_or_raise(Post, post_id, "post")
        self._ensure_permitted(
            ResourceType.POST, post_id, user_ref=user_ref, owner=post.author, criteria=criteria
        )
        post.title = require_text(title, "title")
        post.content = require_text(content, "content")
        if url is not None:
            post.url = url
        if header_image is not None:
            post.header_image = header_image
        if tags is not None:
            post.tags = self._resolve_tags(tags)
        if entities is not None:
            post.entities = self._resolve_entities(entities)
        post.updated = utcnow()
        post.updated_by = user_ref
        self.session.flush()
        self._bind_images(images, post_id=post.id)
        self._commit()
        return post

    def delete_post(self, user_ref: str, post_id: int, criteria: Criteria | None = None) -> None:
        """Hard-delete a post and everything that hangs off it."""
        post = self._get_or_raise(Post, post_id, "post")
        self._ensure_permitted(
            ResourceType.POST, post_id, user_ref=user_ref, owner=post.author, criteria=criteria
        )
        # Rows without an ORM relationship to the post are removed explicitly.
        self.session.execute(delete(PostView).where(PostView.post_id == post_id))
        self.session.execute(delete(CollectionPost).where(CollectionPost.post_id == post_id))
        answer_ids = select(Answer.id).where(Answer.post_id == post_id)
        self.session.execute(
            update(Attachment)
            .where(or_(Attachment.post_id == post_id, Attachment.answer_id.in_(answer_ids)))
            .values(post_id=None, answer_id=None)
            .execution_options(synchronize_session=False)
        )
        self.session.delete(post)
        self._commit()

    def comment_post(self, user_ref: str, post_id: int, content: str) -> Comment:
        post = self._get_or_raise(Post, post_id, "post", lock=False)
        comment = Comment(post=post, author=user_ref, content=require_text(content, "content"))
        self.session.add(comment)
        self._commit()
        return comment

    def delete_post_comment(
        self,
        user_ref: str,
        post_id: int,
        comment_id: int,
        criteria: Criteria | None = None,
    ) -> None:
        """Delete a post comment; only its author may do so."""
        comment = self.session.scalar(
            select(Comment).where(Comment.id == comment_id, Comment.post_id == post_id)
        )
        if comment is None:
            raise ResourceNotFoundError("comment", comment_id)
        self._ensure_comment_author(comment, user_ref, criteria)
        self.session.delete(comment)
        self._commit()

    def vote_post(self, user_ref: str, post_id: int, score: int) -> bool:
        """Cast or replace the caller's vote; return True if anything changed."""
        post = self._get_or_raise(Post, post_id, "post")
        if post.author == user_ref:
            raise InvariantViolationError("Cannot vote on your own post")
        changed = self._upsert_vote(PostVote, {"post_id": post_id, "user_ref": user_ref}, score)
        if not changed:
            return self._unchanged()
        self._after_post_vote(post)
        return True

    def remove_post_vote(self, user_ref: str, post_id: int) -> bool:
        self._get_or_raise(Post, post_id, "post")
        result = self.session.execute(
            delete(PostVote).where(PostVote.post_id == post_id, PostVote.user_ref == user_ref)
        )
        if not result.rowcount:
            return self._unchanged()
        self._after_post_vote(self.session.get(Post, post_id))  # type: ignore[arg-type]
        return True

    def favorite_post(self, user_ref: str, post_id: int) -> bool:
        """Add the post to the caller's favorites; idempotent."""
        self._get_or_raise(Post, post_id, "post", lock=False)
        if self.session.get(PostFavorite, {"post_id": post_id, "user_ref": user_ref}) is not None:
            return self._unchanged()
        try:
            with self.session.begin_nested():
                self.session.add(PostFavorite(post_id=post_id, user_ref=user_ref))
        except IntegrityError:
            # Concurrent double-invocation already stored the favorite.
            return self._unchanged()
        self._commit()
        return True

    def unfavorite_post(self, user_ref: str, post_id: int) -> bool:
        self._get_or_raise(Post, post_id, "post", lock=False)
        result = self.session.execute(
            delete(PostFavorite).where(
                PostFavorite.post_id == post_id,
                PostFavorite.user_ref == user_ref,
            )
        )
        self._commit()
        return bool(result.rowcount)

    # Helpers --------------------------------------------------------------

    def _after_post_vote(self, post: Post) -> None:
        self.session.flush()
        self._recompute_score(Post, PostVote, PostVote.post_id, post.id)
        self.session.refresh(post)
        self._update_trend(post)
        self._commit()

    def _record_view(self, post: Post, user_ref: str) -> None:
        self.session.add(PostView(post_id=post.id, user_ref=user_ref))
        self.session.execute(
            update(Post)
            .where(Post.id == post.id)
            .values(views=Post.views + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.flush()
        self.session.refresh(post)
        self._update_trend(post)
        self._commit()

    def _refresh_trends(self, posts: list[Post]) -> None:
        for post in posts:
            self._update_trend(post)
        self._commit()

    def _post_filters(self, user_ref: str, options: PostOptions) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        if options.type:
            clauses.append(Post.type == options.type)
        if isinstance(options.author, str):
            clauses.append(Post.author == options.author)
        elif options.author:
            clauses.append(Post.author.in_(options.author))

        tags = normalize_labels(options.tags, lower=True)
        if tags:
            tag_clauses = [
                Post.id.in_(
                    select(post_tag.c.post_id)
                    .join(Tag, Tag.id == post_tag.c.tag_id)
                    .where(Tag.tag == tag)
                )
                for tag in tags
            ]
            clauses.append(or_(*tag_clauses) if options.tags_relation == "or" else and_(*tag_clauses))

        if options.entity:
            clauses.append(
                Post.id.in_(
                    select(post_entity.c.post_id)
                    .join(Entity, Entity.id == post_entity.c.entity_id)
                    .where(Entity.entity_ref == options.entity)
                )
            )
        if options.no_correct_answer:
            clauses.append(~exists().where(Answer.post_id == Post.id, Answer.correct.is_(True)))
        if options.no_answers:
            clauses.append(~exists().where(Answer.post_id == Post.id))
        if options.no_votes:
            clauses.append(~exists().where(PostVote.post_id == Post.id))
        if options.favorite:
            clauses.append(
                Post.id.in_(select(PostFavorite.post_id).where(PostFavorite.user_ref == user_ref))
            )
        if options.search_query:
            pattern = search_pattern(options.search_query)
            clauses.append(
                or_(
                    Post.title.ilike(pattern, escape="\\"),
                    Post.content.ilike(pattern, escape="\\"),
                )
            )
        clauses.extend(date_range_clauses(Post.created, options.from_date, options.to_date))
        if options.collection_id is not None:
            clauses.append(
                Post.id.in_(
                    select(CollectionPost.post_id).where(
                        CollectionPost.collection_id == options.collection_id
                    )
                )
            )
        return clauses

    def _post_ordering(self, options: PostOptions) -> list[ColumnElement]:
        ascending = validate_order(options.order)
        if options.random:
            return [func.random()]
        if options.order_by is None and options.collection_id is not None:
            position = (
                select(CollectionPost.position)
                .where(
                    CollectionPost.post_id == Post.id,
                    CollectionPost.collection_id == options.collection_id,
                )
                .correlate(Post)
                .scalar_subquery()
            )
            return [position.asc(), Post.id.asc()]

        columns = _post_order_columns()
        key = options.order_by or "created"
        if key not in columns:
            raise InvalidInputError(f"Cannot order posts by '{key}'")
        column = columns[key]
        # Identifier tie-break keeps pagination stable.
        if ascending:
            return [column.asc(), Post.id.asc()]
        return [column.desc(), Post.id.desc()]

    def _post_load_options(self, options: PostOptions) -> list:  # type: ignore[type-arg]
        loaders = [selectinload(Post.comments)]
        if options.include_entities:
            loaders.extend([selectinload(Post.tags), selectinload(Post.entities)])
        if options.include_answers:
            loaders.append(selectinload(Post.answers).selectinload(Answer.comments))
        if options.include_votes:
            loaders.append(selectinload(Post.votes))
        return loaders
