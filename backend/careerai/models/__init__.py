"""Import all models so SQLAlchemy metadata knows about them."""
from careerai.models.base import Base
from careerai.models.chat import ChatTurn, Attachment
from careerai.models.prompt import PromptTemplate
from careerai.models.review import ReviewQuestion, Review, ReviewAnswer
from careerai.models.skill import Skill, UserSkill
from careerai.models.notification import Notification

__all__ = [
    "Base",
    "ChatTurn", "Attachment", "PromptTemplate",
    "ReviewQuestion", "Review", "ReviewAnswer",
    "Skill", "UserSkill", "Notification",
]
