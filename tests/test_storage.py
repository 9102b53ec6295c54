import json

import pytest

from library import Library
from storage import FormatError, StorageError, StorageIOError, load_document, save_document


def test_load_missing_file_gives_empty_library(data_file):
    assert not data_file.exists()
    lib = Library.load(data_file)
    assert lib.books == []
    assert lib.users == []

def test_load_missing_file_returns_no_document(data_file):
    assert load_document(data_file) is None

def test_save_then_load_round_trip(stocked_lib, data_file):
    stocked_lib.issue_book("Echo", "Bob")
    stocked_lib.save(data_file)

    loaded = Library.load(data_file)

    assert loaded.books == stocked_lib.books
    assert loaded.users == stocked_lib.users
    assert loaded.to_dict() == stocked_lib.to_dict()

def test_saved_document_shape(data_file):
    lib = Library()
    lib.add_book("Dune", "Herbert")
    lib.add_user("Alice")
    lib.issue_book("Dune", "Alice")
    lib.save(data_file)

    with open(data_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    assert data == {
        "books": [{"id": 1, "title": "Dune", "author": "Herbert", "is_issued": True}],
        "users": [{"id": 1, "name": "Alice", "borrowed_books": [1]}],
    }

def test_save_overwrites_existing_file(data_file):
    data_file.write_text(json.dumps({"books": [], "users": [], "extra": "x" * 1000}), encoding="utf-8")

    lib = Library()
    lib.add_user("Alice")
    lib.save(data_file)

    data = json.loads(data_file.read_text(encoding="utf-8"))
    assert "extra" not in data
    assert data["users"][0]["name"] == "Alice"

def test_load_previously_saved_file(data_file):
    # Compact output written by earlier versions of the tool
    data_file.write_text(
        '{"books":[{"id":1,"title":"Dune","author":"Herbert","is_issued":false}],'
        '"users":[{"id":1,"name":"Alice","borrowed_books":[]}]}',
        encoding="utf-8",
    )
    lib = Library.load(data_file)
    assert lib.books[0].title == "Dune"
    assert lib.users[0].name == "Alice"

def test_load_invalid_json(data_file):
    data_file.write_text("{not json", encoding="utf-8")
    with pytest.raises(FormatError, match="Failed to parse JSON"):
        Library.load(data_file)

def test_load_empty_file(data_file):
    data_file.write_text("", encoding="utf-8")
    with pytest.raises(FormatError):
        Library.load(data_file)

@pytest.mark.parametrize("document", [
    {"books": []},
    {"users": []},
    [],
    {"books": [{"id": 1, "title": "Dune", "author": "Herbert"}], "users": []},
    {"books": [{"id": "1", "title": "Dune", "author": "Herbert", "is_issued": False}], "users": []},
    {"books": [{"id": 1, "title": "Dune", "author": "Herbert", "is_issued": 0}], "users": []},
    {"books": [{"id": 0, "title": "Dune", "author": "Herbert", "is_issued": False}], "users": []},
    {"books": [], "users": [{"id": -1, "name": "Alice", "borrowed_books": []}]},
    {"books": [], "users": [{"id": 1, "name": "Alice", "borrowed_books": ["1"]}]},
])
def test_load_wrong_shape(data_file, document):
    data_file.write_text(json.dumps(document), encoding="utf-8")
    with pytest.raises(FormatError):
        Library.load(data_file)

def test_load_ignores_unknown_keys(data_file):
    data_file.write_text(json.dumps({
        "books": [{"id": 1, "title": "Dune", "author": "Herbert", "is_issued": False, "isbn": "x"}],
        "users": [],
        "version": 2,
    }), encoding="utf-8")
    lib = Library.load(data_file)
    assert lib.books[0].to_dict() == {"id": 1, "title": "Dune", "author": "Herbert", "is_issued": False}

def test_load_non_utf8_file(data_file):
    data_file.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(FormatError):
        Library.load(data_file)

def test_load_directory_is_io_error(tmp_path):
    with pytest.raises(StorageIOError, match="Failed to read file"):
        Library.load(tmp_path)

def test_save_to_missing_directory_is_io_error(tmp_path, stocked_lib):
    with pytest.raises(StorageIOError, match="Failed to write file"):
        stocked_lib.save(tmp_path / "missing" / "library.json")

def test_failed_save_leaves_no_temp_file(tmp_path, stocked_lib):
    target = tmp_path / "library.json"
    target.mkdir()

    with pytest.raises(StorageIOError, match="Failed to write file"):
        stocked_lib.save(target)

    assert not (tmp_path / "library.json.tmp").exists()
    assert target.is_dir()

def test_save_malformed_state_is_format_error(data_file):
    with pytest.raises(FormatError, match="Failed to serialize to JSON"):
        save_document(data_file, {"books": [{"id": "one"}], "users": []})
    assert not data_file.exists()

def test_storage_errors_share_base_class():
    assert issubclass(StorageIOError, StorageError)
    assert issubclass(FormatError, StorageError)
