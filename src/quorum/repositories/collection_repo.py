"""Data access for curated post collections."""

from __future__ import annotations

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.orm import selectinload

from quorum.core.exceptions import ForbiddenError, InvalidInputError
from quorum.db.time import utcnow
from quorum.models import AccessLevel, Attachment, Collection, CollectionPost, Post
from quorum.permissions.criteria import Criteria
from quorum.permissions.resources import ResourceType

from .base import RepositoryBase, require_text, search_pattern, validate_order
from .options import CollectionOptions, Collections

__all__ = ["CollectionRepository"]

_COLLECTION_ORDER_COLUMNS = {
    "created": Collection.created,
    "owner": Collection.owner,
    "title": Collection.title,
}


def _access_level(value: str | AccessLevel) -> str:
    try:
        return AccessLevel(value).value
    except ValueError as exc:
        raise InvalidInputError(f"Unknown access level '{value}'") from exc


def _visible_to(user_ref: str) -> ColumnElement[bool]:
    return or_(Collection.owner == user_ref, Collection.read_access == AccessLevel.PUBLIC.value)


class CollectionRepository(RepositoryBase):
    """Ordered, access-controlled sets of posts.

    Private collections are only visible to their owner. Membership changes
    are open to the owner and, for collections with public edit access, to
    everyone.
    """

    def get_collections(
        self,
        user_ref: str,
        options: CollectionOptions | None = None,
        criteria: Criteria | None = None,
    ) -> Collections:
        options = options or CollectionOptions()
        clauses: list[ColumnElement[bool]] = [_visible_to(user_ref)]
        if options.owner:
            clauses.append(Collection.owner == options.owner)
        if options.search_query:
            pattern = search_pattern(options.search_query)
            clauses.append(
                or_(
                    Collection.title.ilike(pattern, escape="\\"),
                    Collection.description.ilike(pattern, escape="\\"),
                )
            )
        if criteria is not None:
            clauses.append(self.criteria_clause(criteria, ResourceType.COLLECTION))

        total = self.session.scalar(select(func.count(Collection.id)).where(*clauses)) or 0

        key = options.order_by or "created"
        if key not in _COLLECTION_ORDER_COLUMNS:
            raise InvalidInputError(f"Cannot order collections by '{key}'")
        column = _COLLECTION_ORDER_COLUMNS[key]
        if validate_order(options.order):
            ordering = [column.asc(), Collection.id.asc()]
        else:
            ordering = [column.desc(), Collection.id.desc()]

        stmt = (
            select(Collection)
            .where(*clauses)
            .order_by(*ordering)
            .options(selectinload(Collection.items))
        )
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)
        return Collections(collections=list(self.session.scalars(stmt)), total=total)

    def get_collection(
        self,
        user_ref: str,
        collection_id: int,
        criteria: Criteria | None = None,
    ) -> Collection | None:
        clauses = [Collection.id == collection_id, _visible_to(user_ref)]
        if criteria is not None:
            clauses.append(self.criteria_clause(criteria, ResourceType.COLLECTION))
        return self.session.scalar(select(Collection).where(*clauses))

    def create_collection(
        self,
        *,
        user_ref: str,
        title: str,
        description: str | None = None,
        images: list[int] | None = None,
        header_image: str | None = None,
        read_access: str = AccessLevel.PRIVATE.value,
        edit_access: str = AccessLevel.PRIVATE.value,
    ) -> Collection:
        collection = Collection(
            owner=user_ref,
            title=require_text(title, "title"),
            description=description,
            header_image=header_image,
            read_access=_access_level(read_access),
            edit_access=_access_level(edit_access),
        )
        self.session.add(collection)
        self.session.flush()
        self._bind_images(images, collection_id=collection.id)
        self._commit()
        return collection

    def update_collection(
        self,
        *,
        user_ref: str,
        collection_id: int,
        title: str,
        description: str | None = None,
        images: list[int] | None = None,
        header_image: str | None = None,
        read_access: str | None = None,
        edit_access: str | None = None,
        criteria: Criteria | None = None,
    ) -> Collection:
        collection = self._get_or_raise(Collection, collection_id, "collection")
        self._ensure_permitted(
            ResourceType.COLLECTION,
            collection_id,
            user_ref=user_ref,
            owner=collection.owner,
            criteria=criteria,
        )
        collection.title = require_text(title, "title")
        collection.description = description
        if header_image is not None:
            collection.header_image = header_image
        # Only the owner may change who can see or edit the collection.
        if collection.owner == user_ref:
            if read_access is not None:
                collection.read_access = _access_level(read_access)
            if edit_access is not None:
                collection.edit_access = _access_level(edit_access)
        collection.updated = utcnow()
        self.session.flush()
        self._bind_images(images, collection_id=collection.id)
        self._commit()
        return collection

    def delete_collection(
        self,
        user_ref: str,
        collection_id: int,
        criteria: Criteria | None = None,
    ) -> None:
        collection = self._get_or_raise(Collection, collection_id, "collection")
        self._ensure_permitted(
            ResourceType.COLLECTION,
            collection_id,
            user_ref=user_ref,
            owner=collection.owner,
            criteria=criteria,
        )
        self.session.execute(
            update(Attachment)
            .where(Attachment.collection_id == collection_id)
            .values(collection_id=None)
            .execution_options(synchronize_session=False)
        )
        self.session.delete(collection)
        self._commit()

    def add_post_to_collection(
        self,
        user_ref: str,
        collection_id: int,
        post_id: int,
        criteria: Criteria | None = None,
    ) -> Collection:
        """Append a post at the end of the collection; adding twice is a no-op."""
        collection = self._get_or_raise(Collection, collection_id, "collection")
        self._get_or_raise(Post, post_id, "post", lock=False)
        self._ensure_can_edit(collection, user_ref, criteria)
        if post_id not in collection.post_ids:
            next_position = self.session.scalar(
                select(func.coalesce(func.max(CollectionPost.position) + 1, 0)).where(
                    CollectionPost.collection_id == collection_id
                )
            )
            collection.items.append(
                CollectionPost(collection_id=collection_id, post_id=post_id, position=next_position)
            )
            collection.updated = utcnow()
        self._commit()
        return collection

    def remove_post_from_collection(
        self,
        user_ref: str,
        collection_id: int,
        post_id: int,
        criteria: Criteria | None = None,
    ) -> Collection:
        collection = self._get_or_raise(Collection, collection_id, "collection")
        self._ensure_can_edit(collection, user_ref, criteria)
        result = self.session.execute(
            delete(CollectionPost).where(
                CollectionPost.collection_id == collection_id,
                CollectionPost.post_id == post_id,
            )
        )
        if result.rowcount:
            collection.updated = utcnow()
        self._commit()
        self.session.refresh(collection)
        return collection

    def _ensure_can_edit(
        self,
        collection: Collection,
        user_ref: str,
        criteria: Criteria | None,
    ) -> None:
        if criteria is not None:
            if not self.matches_criteria(ResourceType.COLLECTION, collection.id, criteria):
                raise ForbiddenError(f"{user_ref} may not edit collection {collection.id}")
            return
        if collection.owner != user_ref and collection.edit_access != AccessLevel.PUBLIC.value:
            raise ForbiddenError(f"{user_ref} may not edit collection {collection.id}")
