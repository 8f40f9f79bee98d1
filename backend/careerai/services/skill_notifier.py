"""Low skill-score sweep.

One targeted ``skill_improvement`` notification per affected user per run,
summarizing every skill scored below the threshold. Runs are not deduplicated:
a user whose scores stay low is notified again on the next run.
"""
import logging
from collections import defaultdict
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from careerai.config import settings
from careerai.models.notification import Notification
from careerai.models.skill import UserSkill

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "skill_improvement"
NOTIFICATION_TITLE = "Improve your skill scores"
MAX_LISTED_SKILLS = 5
UNKNOWN_SKILL_NAME = "Skill"


def build_message(skills: list[dict], threshold: int) -> str:
    """``skills`` must already be sorted by ascending score."""
    if len(skills) == 1:
        s = skills[0]
        return (
            f"Your skill score for {s['name']} is {s['score']}/100, which is below {threshold}. "
            "Consider taking the assessment to improve your score."
        )

    listed = ", ".join(f"{s['name']} ({s['score']}/100)" for s in skills[:MAX_LISTED_SKILLS])
    hidden = len(skills) - MAX_LISTED_SKILLS
    if hidden > 0:
        listed += f", and {hidden} more"
    return (
        f"Several of your skills are below {threshold}: {listed}. "
        "Consider taking assessments to improve your scores."
    )


async def run_low_skill_notification_sweep(db: AsyncSession, threshold: Optional[int] = None) -> dict:
    threshold = settings.LOW_SKILL_THRESHOLD if threshold is None else threshold

    result = await db.execute(
        select(UserSkill)
        .where(UserSkill.skill_score.is_not(None), UserSkill.skill_score < threshold)
        .options(selectinload(UserSkill.skill))
        .order_by(UserSkill.id)
    )

    by_user = defaultdict(list)
    for row in result.scalars().all():
        if not row.user_id:
            continue
        by_user[row.user_id].append({
            "skill_id": row.skill_id,
            "name": row.skill.name if row.skill else UNKNOWN_SKILL_NAME,
            "score": row.skill_score,
        })

    for user_id, skills in by_user.items():
        skills.sort(key=lambda s: s["score"])
        db.add(Notification(
            type=NOTIFICATION_TYPE,
            title=NOTIFICATION_TITLE,
            message=build_message(skills, threshold),
            link=None,
            target_all=False,
            is_read=False,
            metadata_={
                "threshold": threshold,
                "skills": [{"skill_id": s["skill_id"], "score": s["score"]} for s in skills],
            },
            user_id=user_id,
        ))
    await db.commit()

    logger.info("Low skill sweep (threshold %s) notified %d users", threshold, len(by_user))
    return {"notified_count": len(by_user)}
