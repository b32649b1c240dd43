"""User repository - Database operations for users"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def list_users(
        db: Session, organization_id: Optional[int], active_only: bool = True
    ) -> list[User]:
        """Users of one organization, or of every organization when organization_id is None"""
        query = db.query(User)
        if organization_id is not None:
            query = query.filter(User.organization_id == organization_id)
        if active_only:
            query = query.filter(User.is_active.is_(True))
        return query.order_by(User.name).all()

    @staticmethod
    def add_user(db: Session, **user_data) -> User:
        """Stage a new user without committing"""
        user = User(**user_data)
        db.add(user)
        db.flush()
        return user
