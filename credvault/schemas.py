from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional

from .core.security import MAX_PASSWORD_BYTES, password_too_long


class EmailInput(BaseModel):
    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserCreate(EmailInput):
    full_name: Optional[str] = None
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_hasher(cls, value):
        if password_too_long(value):
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class UserLogin(EmailInput):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyOTP(EmailInput):
    otp: str = Field(min_length=1)
    email: Optional[EmailStr] = None


class ForgotPassword(EmailInput):
    email: EmailStr


class ResetPassword(EmailInput):
    otp: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
    confirm_password: str = Field(min_length=1)
    email: Optional[EmailStr] = None

    @field_validator("new_password")
    @classmethod
    def password_fits_hasher(cls, value):
        if password_too_long(value):
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class User(BaseModel):
    id: int
    full_name: Optional[str] = None
    email: str
    verified: bool

    class Config:
        from_attributes = True


class SignupUser(User):
    otp: Optional[str] = None


class AuthResponse(BaseModel):
    status: int
    success: bool
    message: Optional[str] = None
    token: Optional[str] = None
    user: Optional[SignupUser] = None


class ProductBase(BaseModel):
    name: str = Field(min_length=1)
    description: str
    price: float = Field(ge=0)
    image_url: str


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None

    @field_validator("name", "description", "price", "image_url")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

class Product(ProductBase):
    id: int

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    status: int
    success: bool
    message: Optional[str] = None
    product: Optional[Product] = None


class ProductList(BaseModel):
    status: int
    success: bool
    products: List[Product]
