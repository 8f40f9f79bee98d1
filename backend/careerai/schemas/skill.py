"""Skill assessment request/response schemas."""
from careerai.schemas.base import CamelModel


class SkillRef(CamelModel):
    id: int
    name: str


class SkillQuestionsResponse(CamelModel):
    skill: SkillRef
    questions: list[str]


class SkillScoreRequest(CamelModel):
    answers: list[str]


class SkillScoreResponse(CamelModel):
    score: int
    feedback: str
