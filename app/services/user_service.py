"""User lookups, including the batched actor directory used by order history."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.history import ActorIdentity


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def actor_display_name(first_name: str | None, last_name: str | None, username: str | None) -> str:
    full_name = " ".join(part for part in (first_name, last_name) if part)
    return full_name or username or "Desconocido"


class UserDirectory:
    """Resolves actor ids to display identities with a single query."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_ids(self, ids: Iterable[int]) -> list[ActorIdentity]:
        unique_ids: set[int] = set(ids)
        if not unique_ids:
            return []
        users: list[User] = list(self.db.scalars(select(User).where(User.id.in_(unique_ids))).all())
        return [
            ActorIdentity(
                id=user.id,
                first_name=user.first_name,
                last_name=user.last_name,
                username=user.username,
                display_name=actor_display_name(user.first_name, user.last_name, user.username),
            )
            for user in users
        ]
