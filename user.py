from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class User:
    """A registered borrower and the ids of the books they currently hold."""

    id: int
    name: str
    borrowed_books: List[int] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.name} (ID: {self.id})"

    def has_borrowed(self, book_id: int) -> bool:
        return book_id in self.borrowed_books

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "borrowed_books": list(self.borrowed_books),
        }

    @staticmethod
    def from_dict(data: dict) -> "User":
        return User(
            id=data["id"],
            name=data["name"],
            borrowed_books=list(data["borrowed_books"]),
        )
