import pytest

from library import Library
from utils.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # The CLI stores the chosen output mode in the environment; reset it per test
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")


@pytest.fixture
def data_file(tmp_path):
    # Unique per-test data file path; not created yet
    return tmp_path / "library.json"


@pytest.fixture
def lib():
    return Library()


@pytest.fixture
def stocked_lib():
    lib = Library()
    lib.add_book("Dune", "Frank Herbert")
    lib.add_book("Echo", "Pam Munoz Ryan")
    lib.add_book("Echo", "Pam Munoz Ryan")
    lib.add_user("Alice")
    lib.add_user("Bob")
    return lib
