from .base import Base
from .complaint import Complaint, ComplaintHistory, ComplaintStatus, Feedback, HistoryAction, Urgency
from .user import Role, User

__all__ = [
    "Base",
    "Complaint",
    "ComplaintHistory",
    "ComplaintStatus",
    "Feedback",
    "HistoryAction",
    "Role",
    "Urgency",
    "User",
]
