from .collection import Collection, ALL_COLLECTIONS
from .personal_info import PersonalInfo
from .preference import Preference
from .milestone import Milestone
from .mood import Mood
from .thought import Thought
from .food_record import FoodRecord
from .chat_history import ChatHistory

MODEL_BY_COLLECTION = {
    Collection.personal_info: PersonalInfo,
    Collection.preferences: Preference,
    Collection.milestones: Milestone,
    Collection.moods: Mood,
    Collection.thoughts: Thought,
    Collection.food_records: FoodRecord,
    Collection.chat_history: ChatHistory,
}

__all__ = [
    "Collection",
    "ALL_COLLECTIONS",
    "PersonalInfo",
    "Preference",
    "Milestone",
    "Mood",
    "Thought",
    "FoodRecord",
    "ChatHistory",
    "MODEL_BY_COLLECTION",
]
