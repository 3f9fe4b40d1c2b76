from .protocols import Document, DocumentStore, RecordWatch, matches
from .sub_user import SubUser, SubUserProfile, SubUserUpdate, parse_input

__all__ = [
    "Document",
    "DocumentStore",
    "RecordWatch",
    "matches",
    "SubUser",
    "SubUserProfile",
    "SubUserUpdate",
    "parse_input",
]
