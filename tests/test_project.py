import pytest

from framereel.config import MAX_RECENT_PROJECTS
from framereel.core.project import (
    create_project,
    list_project_folders,
    open_project,
    sanitize_project_name,
)
from framereel.core.recent import load_recent_projects, push_recent_project, recent_file
from framereel.core.store import StoreError


def test_sanitize_project_name():
    assert sanitize_project_name('a/b:c*?"<>|') == "a_b_c______"
    assert sanitize_project_name("trailing. . ") == "trailing"
    assert sanitize_project_name("...") == "Untitled"
    assert sanitize_project_name("Holiday 2024") == "Holiday 2024"


def test_create_and_reopen_project(tmp_path):
    project = create_project(tmp_path, "Trip")
    assert project.root == tmp_path / "Trip"
    assert project.media_dir.is_dir()
    assert project.db_path.is_file()
    sid = project.store.create_scene()
    project.close()

    again = open_project(tmp_path / "Trip", base=tmp_path)
    assert [s.id for s in again.store.list_scenes()] == [sid]
    again.close()
    assert list_project_folders(tmp_path) == [tmp_path / "Trip"]


def test_open_non_project(tmp_path):
    (tmp_path / "plain").mkdir()
    with pytest.raises(StoreError):
        open_project(tmp_path / "plain")
    assert list_project_folders(tmp_path) == []
    assert list_project_folders(tmp_path / "absent") == []


def test_create_registers_recent(tmp_path):
    a = create_project(tmp_path, "A")
    b = create_project(tmp_path, "B")
    a.close()
    b.close()
    assert load_recent_projects(tmp_path) == [str(tmp_path / "B"), str(tmp_path / "A")]


def test_recent_dedup_and_cap(tmp_path):
    for i in range(MAX_RECENT_PROJECTS + 3):
        push_recent_project(tmp_path, f"/p/{i}")
    push_recent_project(tmp_path, "/p/5")
    recent = load_recent_projects(tmp_path)
    assert len(recent) == MAX_RECENT_PROJECTS
    assert recent[0] == "/p/5"
    assert recent.count("/p/5") == 1
    assert recent[1] == f"/p/{MAX_RECENT_PROJECTS + 2}"


def test_recent_ignores_blank_lines(tmp_path):
    recent_file(tmp_path).write_text("\n/one\n\n/two\n")
    assert load_recent_projects(tmp_path) == ["/one", "/two"]
    assert load_recent_projects(tmp_path / "empty") == []
