# stageplan

`stageplan` is a library for keeping a software project plan on disk and working through it in planning stages. A project is stored as a `project.json` file in its own directory, next to an `idea.md` file that holds the starting idea. The project records six stages, and for each one it keeps a status, the text produced for it and any artifacts.

The package also provides:

- prompt templates with `{{variable}}` placeholders
- coloured terminal output and interactive prompts
- small file-system helpers

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Projects

`stageplan.models` holds the data types:

- `Project` holds the ID, name, description, directory, timestamps and a list of `StageRecord`s.
- `StageRecord` holds one stage's number, name, description, `StageStatus`, completion time, content and `Artifact`s.
- `StageStatus` has four values: `NOT_STARTED`, `IN_PROGRESS`, `COMPLETED` and `FAILED`.
- `default_stages()` gives the six stages a new project starts with, none of them started.

```python
from stageplan.models import Project, StageStatus

project = Project("abc123", "Photo Sorter", "A tool that sorts my photos", "photo-sorter")
project.update_stage(1, "The plan…", StageStatus.COMPLETED)   # True; sets completed_at
project.get_stage(7)                                         # None

text = project.to_json()
again = Project.from_json(text)
```

`update_stage` and `add_artifact` return `False` when the stage number does not exist. Malformed JSON or missing fields raise `SerializationError`.

### Creating, saving and loading

`stageplan.initializer.run_init(name, description, base_dir=None)` creates a project. It works under `base_dir`, or the working directory when `base_dir` is not given, and does the following:

- creates a directory named after the project, lower-cased with spaces turned into hyphens
- adds empty `stages/` and `artifacts/` directories inside it
- writes `project.json` and `idea.md`
- prints the new ID
- returns the `Project`

IDs come from `new_project_id()`: ten random URL-safe characters.

`stageplan.projectstore` provides the storage functions:

- `save_project(project)` writes `project.json` into the project's directory.
- `load_project(project_id, projects_dir=None)` finds a project and loads it. It searches the working directory first: a subdirectory named after the ID, then any subdirectory whose `project.json` has that ID. After that it tries `projects_dir` the same way. If nothing matches it raises `ProjectNotFoundError`.
- `find_project_dir(directory, project_id)` does the subdirectory search for a single directory.
- `get_project_idea(project_id, projects_dir=None)` returns the text of `idea.md`. It raises `ProjectFileError` if the file is missing.
- `validate_project_id` accepts only letters, digits, `-` and `_`. Any other ID raises `InvalidInputError`.
- `save_project_async` and `load_project_async` run the same work in a thread.

### Listing and status

`stageplan.listing` provides:

- `collect_projects(directory)` loads every project in the direct subdirectories of `directory` and skips unreadable files with a warning.
- `get_all_projects(projects_dir=None)` combines the projects in the working directory with those in `projects_dir`. `get_all_projects_async` is the async form.
- `list_projects(projects_dir=None)` prints an ID/name table and returns the projects.
- `show_status(project_id, projects_dir=None)` prints a project's details and the state of every stage, then returns the project.

## Prompt templates

`stageplan.prompts.render_template(source, data)` renders Handlebars-style text. It supports the following:

- `{{name}}` and dotted paths; output is HTML-escaped
- `{{{name}}}` or `{{&name}}` for unescaped output
- `{{#if}}`, `{{#unless}}`, `{{#each}}` and `{{#with}}` blocks, each with `{{else}}`
- `@index`, `@first`, `@last` and `@key` inside `each`
- `../` to reach the enclosing scope
- comments, and `~` to trim whitespace

Bad syntax raises `ValueError`.

`PromptManager(template_dir)` works with a directory of templates:

- It creates the directory if needed.
- It loads every `*.hbs` file in it under the file's stem.
- It adds the built-in templates `stage1`–`stage5` (from `DEFAULT_TEMPLATES`) for any of those names that is not already present.

```python
from stageplan.prompts import PromptManager, render_template

render_template("Hello {{name}}", {"name": "world"})   # "Hello world"

manager = PromptManager("templates")
manager.add_template("custom", "This is a {{project_name}} template.")  # also writes custom.hbs
manager.render("custom", {"project_name": "Demo"})
manager.has_template("stage1")      # True
manager.template_names()            # sorted list of names
```

`default_manager()` returns a manager over `~/.stageplan/templates`.

## Terminal helpers

`stageplan.ui` provides:

- coloured messages: `print_success`, `print_error` (to stderr), `print_warning`, `print_info` and `print_stage_header`
- input prompts: `prompt`, `prompt_yes_no` and `prompt_select` (returns a zero-based index)
- `with_spinner(message, awaitable)`, which shows a spinner while it awaits
- `progress_bar(length, message)`, which returns a `tqdm` bar

`stageplan.console` writes each message both to the log and to the terminal:

- `info_user`
- `success`
- `warn_user`
- `error_user`
- `debug_user`, which prints only when the `STAGEPLAN_LOG` environment variable contains `debug`

## File helpers

`stageplan.fsutil` wraps common file operations. Helpers that write or copy a file create the parent directories they need. The helpers are:

- reading and writing: `read_to_string`, `write_string_to_file`, `append_string_to_file`, `read_file`, `write_file`
- directories: `ensure_dir`, `ensure_dir_exists`, `list_files`, `list_dirs`
- checks: `file_exists`, `dir_exists`
- removing: `delete_file`, `delete_dir`
- moving and copying: `copy_file` (returns the bytes copied) and `rename`
- async forms: `read_file_async`, `write_file_async` and `ensure_dir_async`

`find_files(directory, pattern)` searches recursively. Matching ignores case, and `*` and `?` also match path separators. An invalid pattern raises `InvalidInputError`.

## Errors

Every error the package defines derives from `stageplan.models.ToolkitError`:

- `InvalidInputError`
- `ProjectNotFoundError`
- `TemplateError`
- `SerializationError`
- `ProjectFileError`
- `StageNotFoundError`

## What this package does not do

- It has no command-line program. Everything is used from Python.
- It does not run planning stages against an AI model and contains no model client. The project records, prompt templates and storage that such a runner would use are all here, but sending prompts and storing the answers is left to the caller. Use `Project.update_stage` and `save_project` to store them.