from __future__ import annotations

import asyncio
from collections.abc import Iterable

from users_service.models.schemas import User


class UserStore:
    """Insertion-ordered, in-memory collection of users shared by all requests.

    A single asyncio lock guards the whole collection. It is held only while
    copying out or appending, never across serialization or socket writes.
    """

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._lock = asyncio.Lock()
        self._users: list[User] = list(users)

    async def list_users(self) -> list[User]:
        async with self._lock:
            return list(self._users)

    async def append(self, user: User) -> None:
        async with self._lock:
            self._users.append(user)
