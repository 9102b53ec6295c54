from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Book:
    """Represents a single book in the catalog."""

    id: int
    title: str
    author: str
    is_issued: bool = False

    def __str__(self) -> str:
        return f"{self.title} by {self.author} (ID: {self.id})"

    @property
    def status(self) -> str:
        return "Issued" if self.is_issued else "Available"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "is_issued": self.is_issued,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        return Book(
            id=data["id"],
            title=data["title"],
            author=data["author"],
            is_issued=data["is_issued"],
        )
