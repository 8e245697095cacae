import pytest

from stageplan.prompts import (
    DEFAULT_TEMPLATES,
    PromptManager,
    default_manager,
    render_template,
)


@pytest.fixture
def template_dir(tmp_path):
    return tmp_path / "templates"


@pytest.fixture
def manager(template_dir):
    return PromptManager(template_dir)


def test_directory_is_created(tmp_path):
    target = tmp_path / "a" / "b"
    PromptManager(target)
    assert target.is_dir()


def test_default_templates_registered(manager):
    names = manager.template_names()
    assert set(DEFAULT_TEMPLATES) <= set(names)
    assert all(manager.has_template(f"stage{n}") for n in range(1, 6))
    assert not manager.has_template("stage6")


def test_render_stage1(manager):
    text = manager.render("stage1", {"project_idea": "A kite tracker"})
    assert text.startswith("# Initial Plan Creation")
    assert "## Project Idea\nA kite tracker\n" in text


def test_render_stage4_uses_all_variables(manager):
    data = {
        "project_description": "desc-value",
        "implementation_strategy": "strategy-value",
        "current_status": "status-value",
    }
    text = manager.render("stage4", data)
    assert "## Project Overview\ndesc-value\n" in text
    assert "## Implementation Strategy\nstrategy-value\n" in text
    assert "## Current Status\nstatus-value\n" in text


def test_missing_variable_renders_empty(manager):
    text = manager.render("stage1", {})
    assert "## Project Idea\n\n" in text


def test_render_unknown_template(manager):
    with pytest.raises(ValueError, match="Failed to render template 'nope'"):
        manager.render("nope", {})


def test_add_template_persists(template_dir):
    manager = PromptManager(template_dir)
    manager.add_template("custom", "Hello {{project_name}}.")
    assert (template_dir / "custom.hbs").read_text() == "Hello {{project_name}}."
    assert manager.render("custom", {"project_name": "Demo"}) == "Hello Demo."
    reloaded = PromptManager(template_dir)
    assert reloaded.render("custom", {"project_name": "Demo"}) == "Hello Demo."
    assert "custom" in reloaded.template_names()


def test_add_invalid_template(manager, template_dir):
    with pytest.raises(ValueError, match="Failed to register template 'broken'"):
        manager.add_template("broken", "{{#if x}}open")
    assert not manager.has_template("broken")
    assert not (template_dir / "broken.hbs").exists()


def test_file_overrides_default(template_dir):
    template_dir.mkdir()
    (template_dir / "stage1.hbs").write_text("Idea: {{project_idea}}")
    manager = PromptManager(template_dir)
    assert manager.render("stage1", {"project_idea": "x"}) == "Idea: x"


def test_non_template_files_ignored(template_dir):
    template_dir.mkdir()
    (template_dir / "notes.txt").write_text("{{x}}")
    manager = PromptManager(template_dir)
    assert not manager.has_template("notes")


def test_invalid_template_file_fails_load(template_dir):
    template_dir.mkdir()
    (template_dir / "bad.hbs").write_text("{{#each items}}")
    with pytest.raises(ValueError, match="'bad'"):
        PromptManager(template_dir)


def test_default_manager_uses_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    manager = default_manager()
    assert (tmp_path / ".stageplan" / "templates").is_dir()
    assert manager.has_template("stage1")


def test_variables_are_html_escaped():
    assert render_template("{{v}}", {"v": "<b>&</b>"}) == "&lt;b&gt;&amp;&lt;/b&gt;"


def test_triple_stash_is_raw():
    assert render_template("{{{v}}}", {"v": "<b>&</b>"}) == "<b>&</b>"
    assert render_template("{{& v}}", {"v": "<b>&</b>"}) == "<b>&</b>"


@pytest.mark.parametrize(
    "data, expected",
    [
        ({"flag": True}, "yes"),
        ({"flag": "on"}, "yes"),
        ({"flag": False}, "no"),
        ({}, "no"),
        ({"flag": []}, "no"),
        ({"flag": 0}, "no"),
    ],
)
def test_if_else(data, expected):
    assert render_template("{{#if flag}}yes{{else}}no{{/if}}", data) == expected


def test_unless_is_inverse_of_if():
    source = "{{#unless flag}}yes{{else}}no{{/unless}}"
    assert render_template(source, {"flag": False}) == "yes"
    assert render_template(source, {"flag": True}) == "no"


def test_each_over_list_with_index():
    source = "{{#each items}}{{@index}}={{this}};{{/each}}"
    assert render_template(source, {"items": ["a", "b"]}) == "0=a;1=b;"


def test_each_over_mapping_with_key():
    source = "{{#each m}}{{@key}}:{{this}} {{/each}}"
    assert render_template(source, {"m": {"x": 1, "y": 2}}) == "x:1 y:2 "


def test_each_else_on_empty():
    source = "{{#each items}}x{{else}}none{{/each}}"
    assert render_template(source, {"items": []}) == "none"


def test_each_last_flag():
    source = "{{#each items}}{{this}}{{#unless @last}}, {{/unless}}{{/each}}"
    assert render_template(source, {"items": ["a", "b", "c"]}) == "a, b, c"


def test_paths_and_with_block():
    data = {"user": {"name": "Ada"}, "city": "Paris"}
    assert render_template("{{user.name}}", data) == "Ada"
    assert render_template("{{#with user}}{{name}} in {{../city}}{{/with}}", data) == "Ada in Paris"


def test_whitespace_control_and_comments():
    assert render_template("a  {{~v~}}  b", {"v": "X"}) == "aXb"
    assert render_template("a{{! hidden }}b{{!-- also --}}c", {}) == "abc"


@pytest.mark.parametrize(
    "source",
    [
        "{{#if x}}",
        "{{/if}}",
        "{{#if x}}{{/each}}",
        "{{else}}",
        "{{#each}}{{/each}}",
        "{{#foo x}}{{/foo}}",
        "{{lookup a b}}",
        "{{#if x}}{{else}}{{else}}{{/if}}",
    ],
)
def test_syntax_errors(source):
    with pytest.raises(ValueError):
        render_template(source, {"x": 1})