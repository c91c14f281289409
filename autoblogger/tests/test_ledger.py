import pytest

from autoblogger.api.errors import PersistenceFailure
from autoblogger.api.ledger import TitleLedger, contains


def test_missing_file_is_empty_history(tmp_path):
    ledger = TitleLedger(tmp_path / "nope" / "titles.txt")
    assert ledger.load_history() == []


def test_append_then_load_preserves_order(tmp_path):
    path = tmp_path / "history" / "titles.txt"
    ledger = TitleLedger(path)
    assert ledger.append("First Post")
    assert ledger.append("Second Post")
    assert ledger.load_history() == ["First Post", "Second Post"]
    assert path.read_text(encoding="utf-8") == "First Post\nSecond Post\n"


def test_blank_lines_are_ignored(tmp_path):
    path = tmp_path / "titles.txt"
    path.write_text("One\n\n   \nTwo  \n", encoding="utf-8")
    assert TitleLedger(path).load_history() == ["One", "Two"]


def test_titles_with_newlines_stay_on_one_line(tmp_path):
    ledger = TitleLedger(tmp_path / "titles.txt")
    assert ledger.append("Multi\nline\r\ntitle")
    assert ledger.load_history() == ["Multi line title"]


def test_blank_title_is_not_appended(tmp_path):
    ledger = TitleLedger(tmp_path / "titles.txt")
    assert ledger.append("   ") is False
    assert ledger.load_history() == []


def test_append_failure_is_soft(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    ledger = TitleLedger(blocker / "titles.txt")
    assert ledger.append("Title") is False


def test_unreadable_history_raises(tmp_path):
    directory = tmp_path / "titles.txt"
    directory.mkdir()
    with pytest.raises(PersistenceFailure):
        TitleLedger(directory).load_history()


def test_contains_ignores_case_and_spacing():
    history = ["Building a DAO  with Solidity"]
    assert contains("building a dao with solidity", history)
    assert not contains("Building a DAO with Vyper", history)


def test_undecodable_history_raises(tmp_path):
    path = tmp_path / "titles.txt"
    path.write_bytes(b"Old title \xff\xfe\n")
    with pytest.raises(PersistenceFailure):
        TitleLedger(path).load_history()


def test_append_after_missing_final_newline(tmp_path):
    path = tmp_path / "titles.txt"
    path.write_text("Seeded Title", encoding="utf-8")
    ledger = TitleLedger(path)
    assert ledger.append("New Title")
    assert ledger.load_history() == ["Seeded Title", "New Title"]
    assert path.read_text(encoding="utf-8") == "Seeded Title\nNew Title\n"


def test_append_to_empty_file_has_no_leading_newline(tmp_path):
    path = tmp_path / "titles.txt"
    path.write_text("", encoding="utf-8")
    assert TitleLedger(path).append("First")
    assert path.read_text(encoding="utf-8") == "First\n"
