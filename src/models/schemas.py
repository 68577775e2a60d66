from pydantic import BaseModel, Field
from typing import List, Optional


class BlogCreate(BaseModel):
    # emptiness is checked by the handler so it can answer with a 400
    title: Optional[str] = None
    body: Optional[str] = None
    tags: Optional[List[str]] = []


class BlogUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied.

    Use ``model_dump(exclude_unset=True)`` to tell an absent field apart from
    one sent explicitly as ``null`` or ``""``.
    """

    title: Optional[str] = None
    body: Optional[str] = None
    tags: Optional[List[str]] = None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str
