"""
Reference population for read paths

civicapp/services/population.py

Denormalized reference lists are not updated atomically with the documents
they point at, so any id here may dangle. Missing targets are left out.
"""
from typing import Dict, Iterable, Optional
from civicapp.models.user import UserSummary
from civicapp.services import repository


async def user_summaries(user_ids: Iterable[Optional[str]]) -> Dict[str, UserSummary]:
    found = await repository.users.find_many(i for i in user_ids if i)
    return {
        user_id: UserSummary(id=user_id, name=user.name, avatar=user.avatar)
        for user_id, user in found.items()
    }
