"""Actions and resource kinds understood by the authorization layer."""

from enum import Enum


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class ResourceType(str, Enum):
    POST = "post"
    ANSWER = "answer"
    COMMENT = "comment"
    COLLECTION = "collection"
