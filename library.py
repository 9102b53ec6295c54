import logging
from typing import Any, Dict, List, Optional

from book import Book
from user import User
from storage import PathLike, load_document, save_document

logger = logging.getLogger(__name__)


class LibraryError(Exception):
    """Base class for catalog rule violations. ``str()`` is the user-facing message."""


class UnknownUserError(LibraryError, LookupError):
    def __init__(self, user_name: str, message: Optional[str] = None) -> None:
        self.user_name = user_name
        super().__init__(message or f"No user found with name '{user_name}'.")


class DuplicateUserError(LibraryError, ValueError):
    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        super().__init__(f"Error: User '{user_name}' already exists!")


class BookUnavailableError(LibraryError, LookupError):
    """No copy with this title is on the shelf (absent or all copies issued)."""

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"No available book found with title '{title}'.")


class BookNotIssuedError(LibraryError, LookupError):
    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(f"No issued book found with title '{title}'.")


class NotBorrowedByUserError(LibraryError, ValueError):
    """The book is out, but not with this user."""

    def __init__(self, title: str, user_name: str) -> None:
        self.title = title
        self.user_name = user_name
        super().__init__(f"User '{user_name}' did not borrow book '{title}'.")


class Library:
    """Manages the collection of books, registered users and their loans."""

    def __init__(self, books: Optional[List[Book]] = None, users: Optional[List[User]] = None) -> None:
        self.books: List[Book] = list(books) if books else []
        self.users: List[User] = list(users) if users else []

    # ------------------------- Persistence ------------------------- #
    @classmethod
    def load(cls, path: PathLike) -> "Library":
        """Load a catalog from ``path``; a missing file yields an empty catalog.

        Raises ``StorageIOError`` or ``FormatError`` from the storage layer.
        """
        data = load_document(path)
        if data is None:
            return cls()
        return cls(
            books=[Book.from_dict(item) for item in data["books"]],
            users=[User.from_dict(item) for item in data["users"]],
        )

    def save(self, path: PathLike) -> None:
        save_document(path, self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "books": [book.to_dict() for book in self.books],
            "users": [user.to_dict() for user in self.users],
        }

    # ------------------------- Core operations ------------------------- #
    def add_book(self, title: str, author: str) -> Book:
        """Add a new available book. Inputs are taken as given; callers validate."""
        book = Book(id=len(self.books) + 1, title=title, author=author)
        self.books.append(book)
        logger.info("Added book %s", book)
        return book

    def add_user(self, name: str) -> User:
        """Register a user. Raises ``DuplicateUserError`` if the name is taken."""
        if self.find_user(name) is not None:
            logger.info("Rejected duplicate user '%s'", name)
            raise DuplicateUserError(name)
        user = User(id=len(self.users) + 1, name=name)
        self.users.append(user)
        logger.info("Added user %s", user)
        return user

    def list_books(self) -> List[Book]:
        return list(self.books)

    def display_books(self) -> Optional[List[Dict[str, Any]]]:
        """Rows for rendering the catalog, or ``None`` when it holds no books."""
        if not self.books:
            return None
        return [
            {"id": book.id, "title": book.title, "author": book.author, "status": book.status}
            for book in self.books
        ]

    def issue_book(self, title: str, user_name: str) -> Book:
        """Lend the first available copy of ``title`` to ``user_name``.

        Checks run in order and stop at the first failure:
        the user must exist (``UnknownUserError``), then an available copy must
        exist (``BookUnavailableError``). Copies are matched by title only, in
        collection order.
        """
        user = self.find_user(user_name)
        if user is None:
            logger.info("Issue rejected: unknown user '%s'", user_name)
            raise UnknownUserError(
                user_name, f"No user found with name '{user_name}'. Please register first!"
            )

        book = self._first_book(title, issued=False)
        if book is None:
            logger.info("Issue rejected: no available copy of '%s'", title)
            raise BookUnavailableError(title)

        book.is_issued = True
        user.borrowed_books.append(book.id)
        logger.info("Issued %s to %s", book, user)
        return book

    def return_book(self, title: str, user_name: str) -> Book:
        """Take back an issued copy of ``title`` from ``user_name``.

        Raises ``UnknownUserError``, ``BookNotIssuedError`` or
        ``NotBorrowedByUserError``, checked in that order.
        """
        user = self.find_user(user_name)
        if user is None:
            logger.info("Return rejected: unknown user '%s'", user_name)
            raise UnknownUserError(user_name)

        book = self._first_book(title, issued=True)
        if book is None:
            logger.info("Return rejected: '%s' is not issued", title)
            raise BookNotIssuedError(title)

        if not user.has_borrowed(book.id):
            logger.info("Return rejected: '%s' not borrowed by '%s'", title, user_name)
            raise NotBorrowedByUserError(title, user_name)

        book.is_issued = False
        user.borrowed_books.remove(book.id)
        logger.info("Returned %s from %s", book, user)
        return book

    # ------------------------- Queries ------------------------- #
    def find_user(self, name: str) -> Optional[User]:
        for user in self.users:
            if user.name == name:
                return user
        return None

    def find_book(self, book_id: int) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    def get_statistics(self) -> Dict[str, int]:
        issued = sum(1 for book in self.books if book.is_issued)
        return {
            "total_books": len(self.books),
            "issued_books": issued,
            "available_books": len(self.books) - issued,
            "total_users": len(self.users),
            "active_loans": sum(len(user.borrowed_books) for user in self.users),
        }

    def find_inconsistencies(self) -> List[str]:
        """Describe every place where book flags and user loans disagree.

        An empty list means each issued book is held by exactly one user and
        every held id points at an issued book.
        """
        problems: List[str] = []
        holders: Dict[int, List[str]] = {}
        for user in self.users:
            for book_id in user.borrowed_books:
                holders.setdefault(book_id, []).append(user.name)

        for book in self.books:
            names = holders.get(book.id, [])
            if book.is_issued and not names:
                problems.append(f"Book {book.id} '{book.title}' is issued but held by no user")
            elif not book.is_issued and names:
                problems.append(
                    f"Book {book.id} '{book.title}' is available but held by {', '.join(names)}"
                )
            elif len(names) > 1:
                problems.append(
                    f"Book {book.id} '{book.title}' is held by several entries: {', '.join(names)}"
                )

        known_ids = {book.id for book in self.books}
        for book_id, names in holders.items():
            if book_id not in known_ids:
                problems.append(f"Unknown book id {book_id} held by {', '.join(names)}")
        return problems

    # ------------------------- Helpers ------------------------- #
    def _first_book(self, title: str, issued: bool) -> Optional[Book]:
        for book in self.books:
            if book.title == title and book.is_issued == issued:
                return book
        return None
