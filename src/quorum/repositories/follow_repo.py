"""Tags, catalog entities and the users following them."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from quorum.models import Entity, Tag, UserEntity, UserTag
from quorum.models.post import post_entity, post_tag

from .base import RepositoryBase, normalize_labels
from .options import EntityResponse, TagResponse

__all__ = ["FollowRepository"]


def _tag_counts():  # type: ignore[no-untyped-def]
    posts_count = (
        select(func.count(post_tag.c.post_id))
        .where(post_tag.c.tag_id == Tag.id)
        .correlate(Tag)
        .scalar_subquery()
    )
    follower_count = (
        select(func.count(UserTag.user_ref))
        .where(UserTag.tag_id == Tag.id)
        .correlate(Tag)
        .scalar_subquery()
    )
    return posts_count, follower_count


def _entity_counts():  # type: ignore[no-untyped-def]
    posts_count = (
        select(func.count(post_entity.c.post_id))
        .where(post_entity.c.entity_id == Entity.id)
        .correlate(Entity)
        .scalar_subquery()
    )
    follower_count = (
        select(func.count(UserEntity.user_ref))
        .where(UserEntity.entity_id == Entity.id)
        .correlate(Entity)
        .scalar_subquery()
    )
    return posts_count, follower_count


class FollowRepository(RepositoryBase):
    """Tag and entity catalogs with their derived counters.

    ``posts_count`` and ``follower_count`` are computed from the association
    rows on every read, so they cannot drift from the underlying sets.
    """

    # Tags -----------------------------------------------------------------

    def get_tags(self, *, no_description: bool = False) -> list[TagResponse]:
        """Return every tag used by at least one post."""
        posts_count, follower_count = _tag_counts()
        stmt = (
            select(Tag, posts_count.label("posts_count"), follower_count.label("follower_count"))
            .where(posts_count > 0)
            .order_by(posts_count.desc(), Tag.tag.asc())
        )
        if no_description:
            stmt = stmt.where(Tag.description.is_(None))
        return [
            TagResponse(
                id=tag.id,
                tag=tag.tag,
                description=tag.description,
                posts_count=posts,
                follower_count=followers,
            )
            for tag, posts, followers in self.session.execute(stmt)
        ]

    def get_tag(self, tag: str) -> TagResponse | None:
        posts_count, follower_count = _tag_counts()
        row = self.session.execute(
            select(Tag, posts_count, follower_count).where(Tag.tag == tag.strip().lower())
        ).first()
        if row is None:
            return None
        found, posts, followers = row
        return TagResponse(
            id=found.id,
            tag=found.tag,
            description=found.description,
            posts_count=posts,
            follower_count=followers,
        )

    def update_tag(self, tag: str, description: str | None = None) -> TagResponse | None:
        found = self.session.scalar(select(Tag).where(Tag.tag == tag.strip().lower()))
        if found is None:
            return None
        found.description = description
        self._commit()
        return self.get_tag(found.tag)

    def get_user_tags(self, user_ref: str) -> list[str]:
        stmt = (
            select(Tag.tag)
            .join(UserTag, UserTag.tag_id == Tag.id)
            .where(UserTag.user_ref == user_ref)
            .order_by(Tag.tag)
        )
        return list(self.session.scalars(stmt))

    def get_users_for_tags(self, tags: Iterable[str] | None = None) -> set[str]:
        labels = normalize_labels(tags, lower=True)
        if not labels:
            return set()
        stmt = (
            select(UserTag.user_ref)
            .join(Tag, Tag.id == UserTag.tag_id)
            .where(Tag.tag.in_(labels))
        )
        return set(self.session.scalars(stmt))

    def follow_tag(self, user_ref: str, tag: str) -> bool:
        """Start following ``tag``; return False when already following."""
        labels = normalize_labels([tag], lower=True)
        if not labels:
            return False
        found = self._get_or_create(Tag, Tag.tag, labels[0], tag=labels[0])
        return self._add_follow(UserTag, user_ref=user_ref, tag_id=found.id)

    def unfollow_tag(self, user_ref: str, tag: str) -> bool:
        tag_ids = select(Tag.id).where(Tag.tag == tag.strip().lower())
        result = self.session.execute(
            delete(UserTag).where(UserTag.user_ref == user_ref, UserTag.tag_id.in_(tag_ids))
        )
        self._commit()
        return bool(result.rowcount)

    # Entities -------------------------------------------------------------

    def get_entities(self) -> list[EntityResponse]:
        posts_count, follower_count = _entity_counts()
        stmt = (
            select(Entity, posts_count, follower_count)
            .where(posts_count > 0)
            .order_by(posts_count.desc(), Entity.entity_ref.asc())
        )
        return [
            EntityResponse(
                id=entity.id,
                entity_ref=entity.entity_ref,
                posts_count=posts,
                follower_count=followers,
            )
            for entity, posts, followers in self.session.execute(stmt)
        ]

    def get_entity(self, entity_ref: str) -> EntityResponse | None:
        posts_count, follower_count = _entity_counts()
        row = self.session.execute(
            select(Entity, posts_count, follower_count).where(Entity.entity_ref == entity_ref)
        ).first()
        if row is None:
            return None
        entity, posts, followers = row
        return EntityResponse(
            id=entity.id,
            entity_ref=entity.entity_ref,
            posts_count=posts,
            follower_count=followers,
        )

    def get_user_entities(self, user_ref: str) -> list[str]:
        stmt = (
            select(Entity.entity_ref)
            .join(UserEntity, UserEntity.entity_id == Entity.id)
            .where(UserEntity.user_ref == user_ref)
            .order_by(Entity.entity_ref)
        )
        return list(self.session.scalars(stmt))

    def get_users_for_entities(self, entity_refs: Iterable[str] | None = None) -> set[str]:
        refs = normalize_labels(entity_refs, lower=False)
        if not refs:
            return set()
        stmt = (
            select(UserEntity.user_ref)
            .join(Entity, Entity.id == UserEntity.entity_id)
            .where(Entity.entity_ref.in_(refs))
        )
        return set(self.session.scalars(stmt))

    def follow_entity(self, user_ref: str, entity_ref: str) -> bool:
        refs = normalize_labels([entity_ref], lower=False)
        if not refs:
            return False
        entity = self._get_or_create(Entity, Entity.entity_ref, refs[0], entity_ref=refs[0])
        return self._add_follow(UserEntity, user_ref=user_ref, entity_id=entity.id)

    def unfollow_entity(self, user_ref: str, entity_ref: str) -> bool:
        entity_ids = select(Entity.id).where(Entity.entity_ref == entity_ref.strip())
        result = self.session.execute(
            delete(UserEntity).where(
                UserEntity.user_ref == user_ref,
                UserEntity.entity_id.in_(entity_ids),
            )
        )
        self._commit()
        return bool(result.rowcount)

    def _add_follow(self, model: type[UserTag] | type[UserEntity], **key: object) -> bool:
        if self.session.get(model, key) is not None:
            return self._unchanged()
        try:
            with self.session.begin_nested():
                self.session.add(model(**key))
        except IntegrityError:
            # Concurrent double-invocation already stored the follow.
            return self._unchanged()
        self._commit()
        return True
