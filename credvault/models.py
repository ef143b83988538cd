# credvault/models.py
from sqlalchemy import Boolean, Column, Integer, String, DateTime, Float
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    otp_code = Column(String, nullable=True, index=True)
    otp_issued_at = Column(DateTime(timezone=True), nullable=True)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    image_url = Column(String, nullable=False)
