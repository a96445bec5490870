"""Pydantic request/response models for API endpoints."""

from pydantic import BaseModel


class SearchBody(BaseModel):
    query: str = ""


class SearchResult(BaseModel):
    options: list[str]


class PasswordBody(BaseModel):
    password: str = ""
