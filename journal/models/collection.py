import enum

from journal.core.errors import UnknownCollectionError


class Collection(str, enum.Enum):
    """Fixed vocabulary of logical tables."""
    personal_info = "personal_info"
    preferences = "preferences"
    milestones = "milestones"
    moods = "moods"
    thoughts = "thoughts"
    food_records = "food_records"
    chat_history = "chat_history"

    @classmethod
    def resolve(cls, name: "str | Collection") -> "Collection":
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnknownCollectionError(str(name)) from None


ALL_COLLECTIONS: tuple[Collection, ...] = tuple(Collection)
