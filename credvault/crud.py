# credvault/crud.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .core.errors import Conflict


class UserRepository(ABC):
    """Persistence contract for user credential records."""

    @abstractmethod
    def get_by_id(self, user_id: int) -> Optional[models.User]:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[models.User]:
        pass

    @abstractmethod
    def get_by_otp(self, otp_code: str) -> Optional[models.User]:
        pass

    @abstractmethod
    def otp_in_use(self, otp_code: str, issued_after: datetime,
                   exclude_user_id: Optional[int] = None) -> bool:
        """True if another user holds ``otp_code`` issued after ``issued_after``."""
        pass

    @abstractmethod
    def create(self, full_name: Optional[str], email: str, password_hash: str) -> models.User:
        """Insert a new unverified user; raises Conflict if the email is taken."""
        pass

    @abstractmethod
    def save(self, user: models.User) -> models.User:
        pass

    @abstractmethod
    def delete(self, user_id: int) -> None:
        pass

    @abstractmethod
    def fresh(self) -> "UserRepository":
        """A repository of the same kind on its own connection."""
        pass

    def close(self) -> None:
        pass


class SqlUserRepository(UserRepository):
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int):
        return self.db.get(models.User, user_id)

    def get_by_email(self, email: str):
        return self.db.query(models.User).filter(models.User.email == email).first()

    def get_by_otp(self, otp_code: str):
        return (
            self.db.query(models.User)
            .filter(models.User.otp_code == otp_code)
            .order_by(models.User.otp_issued_at.desc())
            .first()
        )

    def otp_in_use(self, otp_code: str, issued_after: datetime,
                   exclude_user_id: Optional[int] = None) -> bool:
        query = self.db.query(models.User.id).filter(
            models.User.otp_code == otp_code,
            models.User.otp_issued_at > issued_after,
        )
        if exclude_user_id is not None:
            query = query.filter(models.User.id != exclude_user_id)
        return query.first() is not None

    def create(self, full_name, email, password_hash):
        db_user = models.User(
            full_name=full_name,
            email=email,
            password_hash=password_hash,
            verified=False
        )
        self.db.add(db_user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise Conflict("User with this email already exists") from exc
        self.db.refresh(db_user)
        return db_user

    def save(self, user):
        self.db.add(user)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        try:
            self.db.query(models.User).filter(models.User.id == user_id).delete()
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def fresh(self) -> "SqlUserRepository":
        return SqlUserRepository(Session(bind=self.db.get_bind(), autoflush=False))

    def close(self) -> None:
        self.db.close()


def get_products(db: Session) -> List[models.Product]:
    return db.query(models.Product).order_by(models.Product.id).all()


def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    return db.get(models.Product, product_id)


def create_product(db: Session, product: schemas.ProductCreate) -> models.Product:
    db_product = models.Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_product(db: Session, product_id: int, product: schemas.ProductUpdate) -> Optional[models.Product]:
    db_product = get_product(db, product_id)
    if db_product is None:
        return None
    for field, value in product.model_dump(exclude_unset=True).items():
        setattr(db_product, field, value)
    db.commit()
    db.refresh(db_product)
    return db_product


def delete_product(db: Session, product_id: int) -> bool:
    db_product = get_product(db, product_id)
    if db_product is None:
        return False
    db.delete(db_product)
    db.commit()
    return True
