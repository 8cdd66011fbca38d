from enum import Enum


class EventMode(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


# Form fields that must be non-empty strings after trimming
REQUIRED_STRING_FIELDS = [
    "title",
    "description",
    "overview",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "organizer",
]

LIST_FIELDS = ["tags", "agenda"]

MAX_LENGTHS = {
    "title": 100,
    "description": 1000,
    "overview": 500,
}

INITIAL_VERSION = 1

