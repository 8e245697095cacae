import json

import pytest

from stageplan.models import (
    InvalidInputError,
    Project,
    ProjectFileError,
    ProjectNotFoundError,
    SerializationError,
    StageStatus,
)
from stageplan.projectstore import (
    find_project_dir,
    get_project_idea,
    load_project,
    load_project_async,
    save_project,
    save_project_async,
    validate_project_id,
)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    return cwd


def saved(directory, project_id, name="Demo"):
    project = Project(project_id, name, "A description", directory)
    save_project(project)
    return project


@pytest.mark.parametrize("project_id", ["abc-DEF_123", "x", ""])
def test_validate_accepts_safe_ids(project_id):
    validate_project_id(project_id)
    assert all(c.isalnum() or c in "_-" for c in project_id)


@pytest.mark.parametrize("project_id", ["../etc", "a b", "a/b", "id;rm"])
def test_validate_rejects_unsafe_ids(project_id):
    with pytest.raises(InvalidInputError):
        validate_project_id(project_id)


def test_save_writes_round_trippable_json(tmp_path):
    project = saved(tmp_path / "p", "p1")
    data = json.loads((tmp_path / "p" / "project.json").read_text(encoding="utf-8"))
    assert data == project.to_dict()


def test_load_direct_match_in_working_directory(workdir):
    project = saved(workdir / "abc123", "abc123")
    loaded = load_project("abc123")
    assert loaded == project


def test_load_by_searching_subdirectories(workdir):
    project = saved(workdir / "my-project", "Xy12_ab")
    loaded = load_project("Xy12_ab")
    assert loaded.id == "Xy12_ab"
    assert loaded.path == workdir / "my-project"
    assert loaded.name == project.name


def test_load_sets_path_to_found_directory(workdir, tmp_path):
    project = Project("moved", "M", "d", tmp_path / "elsewhere")
    (workdir / "moved-here").mkdir()
    (workdir / "moved-here" / "project.json").write_text(project.to_json(), encoding="utf-8")
    assert load_project("moved").path == workdir / "moved-here"


def test_load_from_projects_dir(workdir, tmp_path):
    projects_dir = tmp_path / "projects"
    saved(projects_dir / "nested", "remote1")
    loaded = load_project("remote1", projects_dir)
    assert loaded.path == projects_dir / "nested"


def test_load_direct_match_in_projects_dir(workdir, tmp_path):
    projects_dir = tmp_path / "projects"
    saved(projects_dir / "remote2", "remote2")
    assert load_project("remote2", projects_dir).path == projects_dir / "remote2"


def test_load_missing_project(workdir):
    with pytest.raises(ProjectNotFoundError) as info:
        load_project("nothing")
    assert info.value.project_id == "nothing"


def test_load_rejects_invalid_id(workdir):
    with pytest.raises(InvalidInputError):
        load_project("../escape")


def test_search_skips_malformed_files(workdir):
    (workdir / "broken").mkdir()
    (workdir / "broken" / "project.json").write_text("{oops", encoding="utf-8")
    saved(workdir / "good", "good1")
    assert find_project_dir(workdir, "good1") == workdir / "good"
    assert find_project_dir(workdir, "absent") is None


def test_direct_match_with_malformed_file_raises(workdir):
    (workdir / "bad1").mkdir()
    (workdir / "bad1" / "project.json").write_text("[]", encoding="utf-8")
    with pytest.raises(SerializationError):
        load_project("bad1")


def test_updates_survive_save_and_load(workdir):
    project = saved(workdir / "upd", "upd")
    project.update_stage(1, "the plan", StageStatus.COMPLETED)
    save_project(project)
    loaded = load_project("upd")
    assert loaded.get_stage(1).content == "the plan"
    assert loaded.get_stage(1).status is StageStatus.COMPLETED


def test_get_project_idea(workdir):
    project = saved(workdir / "idea-proj", "idea1")
    (project.path / "idea.md").write_text("# Idea\n\nBuild it", encoding="utf-8")
    assert get_project_idea("idea1") == "# Idea\n\nBuild it"


def test_get_project_idea_missing_file(workdir):
    saved(workdir / "noidea", "noidea")
    with pytest.raises(ProjectFileError) as info:
        get_project_idea("noidea")
    assert "idea.md" in str(info.value)


@pytest.mark.asyncio
async def test_async_save_and_load(workdir):
    project = Project("async1", "Async", "d", workdir / "async-dir")
    await save_project_async(project)
    loaded = await load_project_async("async1")
    assert loaded == project


@pytest.mark.asyncio
async def test_async_save_rejects_invalid_id(workdir):
    project = Project("bad id", "n", "d", workdir / "x")
    with pytest.raises(InvalidInputError):
        await save_project_async(project)
    assert not (workdir / "x").exists()