"""
Authors a viewer should not see in search results.
"""

from typing import Optional, Set

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bonlog.models.social import Block, Mute


async def get_blocked_user_ids(viewer_id: str, db: AsyncSession) -> Set[str]:
    """Users the viewer blocks plus users who block the viewer."""
    result = await db.execute(
        select(Block.blocker_id, Block.blocked_id).where(
            or_(Block.blocker_id == viewer_id, Block.blocked_id == viewer_id)
        )
    )
    ids: Set[str] = set()
    for blocker_id, blocked_id in result.all():
        ids.add(blocker_id)
        ids.add(blocked_id)
    ids.discard(viewer_id)
    return ids


async def get_muted_user_ids(viewer_id: str, db: AsyncSession) -> Set[str]:
    result = await db.execute(select(Mute.muted_id).where(Mute.muter_id == viewer_id))
    return {muted_id for muted_id in result.scalars().all() if muted_id != viewer_id}


async def get_excluded_user_ids(
    viewer_id: Optional[str],
    db: AsyncSession,
    include_mutes: bool = True,
) -> Set[str]:
    """
    Collect the user ids to hide from ``viewer_id``.

    Args:
        viewer_id: Current user, or None for anonymous searches (excludes nobody)
        db: Database session
        include_mutes: Post searches hide muted users; user search does not

    Returns:
        Set of user ids, never containing the viewer
    """
    if not viewer_id:
        return set()

    excluded = await get_blocked_user_ids(viewer_id, db)
    if include_mutes:
        excluded |= await get_muted_user_ids(viewer_id, db)
    return excluded
