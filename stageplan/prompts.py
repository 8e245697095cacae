"""Prompt templates: loading, registering and rendering Handlebars-style text."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

log = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".hbs"

DEFAULT_TEMPLATES: dict[str, str] = {
    "stage1": """# Initial Plan Creation

I have a project idea that I'd like you to develop into a comprehensive plan.

## Project Idea
{{project_idea}}

## Task
Please take this rough idea and develop it into a comprehensive plan.
Include the following:

1. Technical details and architecture
2. Key features and user stories
3. Implementation approaches
4. Timeline and milestones
5. Potential challenges and solutions

Make the plan thorough and ambitious, capturing the full vision of what this project could be.
Format your response in Markdown with clear sections and structure.
""",
    "stage2": """# Architecture Design

## Project Background
{{project_description}}

## Initial Plan
{{initial_plan}}

## Task
Based on the initial plan, create a comprehensive software architecture design:

1. System components and their interactions
2. Data models and storage strategies
3. API design (if applicable)
4. Technology stack recommendations with justifications
5. Diagrams or visual representations (describe in text)
6. Performance, security, and scalability considerations

Provide extensive detail on each component and how they work together.
Format your response in Markdown with clear sections and structure.
""",
    "stage3": """# Implementation Strategy

## Project Overview
{{project_description}}

## Architecture Design
{{architecture_design}}

## Task
Develop a detailed implementation strategy that includes:

1. Development roadmap with phases
2. Core functionality implementation details
3. Critical path analysis
4. Resource requirements
5. Testing strategy and quality assurance approach
6. Deployment considerations

Break down complex components into manageable tasks and explain the approach for implementing each one.
Format your response in Markdown with clear sections and structure.
""",
    "stage4": """# Progress Assessment

## Project Overview
{{project_description}}

## Implementation Strategy
{{implementation_strategy}}

## Current Status
{{current_status}}

## Task
Provide a comprehensive progress assessment:

1. Evaluate what has been accomplished so far
2. Identify any bottlenecks or challenges faced
3. Suggest adjustments to the original plan if needed
4. Recommend next steps with prioritization
5. Provide technical guidance for overcoming any obstacles

Be honest and constructive in your assessment. Focus on actionable advice.
Format your response in Markdown with clear sections and structure.
""",
    "stage5": """# User Experience Design

## Project Overview
{{project_description}}

## Architecture Design
{{architecture_design}}

## Task
Create a user experience design strategy that includes:

1. User personas and journey maps
2. Interface design principles and guidelines
3. Wireframes or mockups (describe in text)
4. Interaction patterns and navigation flow
5. Accessibility considerations
6. User testing approach

Focus on creating an intuitive, engaging, and accessible user experience.
Format your response in Markdown with clear sections and structure.
""",
}

_TAG_RE = re.compile(
    r"\{\{!--.*?--\}\}"
    r"|\{\{!.*?\}\}"
    r"|\{\{(?P<raw_l>~?)\{(?P<raw>.*?)\}(?P<raw_r>~?)\}\}"
    r"|\{\{(?P<esc_l>~?)(?P<expr>.*?)(?P<esc_r>~?)\}\}",
    re.DOTALL,
)

_BLOCK_HELPERS = frozenset({"if", "unless", "each", "with"})

_ESCAPES = str.maketrans(
    {
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "&": "&amp;",
        "'": "&#x27;",
        "`": "&#x60;",
        "=": "&#x3D;",
    }
)


@dataclass
class _Tag:
    expr: str
    escape: bool
    strip_before: bool
    strip_after: bool


@dataclass
class _Var:
    path: str
    escape: bool


@dataclass
class _Block:
    helper: str
    arg: str
    body: list[_Node] = field(default_factory=list)
    inverse: list[_Node] = field(default_factory=list)


_Node = Union[str, _Var, _Block]


@dataclass(frozen=True)
class _Scope:
    value: Any
    locals: Mapping[str, Any]
    parent: _Scope | None


def _make_tag(match: re.Match[str]) -> _Tag | None:
    if match.group("raw") is not None:
        return _Tag(
            match.group("raw").strip(),
            False,
            bool(match.group("raw_l")),
            bool(match.group("raw_r")),
        )
    if match.group("expr") is not None:
        return _Tag(
            match.group("expr").strip(),
            True,
            bool(match.group("esc_l")),
            bool(match.group("esc_r")),
        )
    return None


def _tokenize(source: str) -> list[str | _Tag]:
    tokens: list[str | _Tag] = []
    strip_next = False
    pos = 0
    for match in _TAG_RE.finditer(source):
        text = source[pos:match.start()]
        pos = match.end()
        if strip_next:
            text = text.lstrip()
        tag = _make_tag(match)
        if tag is not None and tag.strip_before:
            text = text.rstrip()
        if text:
            tokens.append(text)
        if tag is None:
            strip_next = False
            continue
        tokens.append(tag)
        strip_next = tag.strip_after
    tail = source[pos:]
    if strip_next:
        tail = tail.lstrip()
    if tail:
        tokens.append(tail)
    return tokens


def _make_var(tag: _Tag) -> _Var:
    expr, escape = tag.expr, tag.escape
    if expr.startswith("&"):
        expr, escape = expr[1:].strip(), False
    if not expr or expr[0] in ">#/^" or any(c.isspace() for c in expr):
        raise ValueError(f"unsupported expression: {{{{{tag.expr}}}}}")
    return _Var(expr, escape)


def _compile(source: str) -> list[_Node]:
    root: list[_Node] = []
    current = root
    stack: list[tuple[_Block, list[_Node]]] = []
    for token in _tokenize(source):
        if isinstance(token, str):
            current.append(token)
            continue
        expr = token.expr
        if expr.startswith("#"):
            helper, _, arg = expr[1:].strip().partition(" ")
            arg = arg.strip()
            if helper not in _BLOCK_HELPERS:
                raise ValueError(f"unknown block helper: {helper!r}")
            if not arg or any(c.isspace() for c in arg):
                raise ValueError(f"block helper {helper!r} needs one argument")
            block = _Block(helper, arg)
            current.append(block)
            stack.append((block, current))
            current = block.body
        elif expr in ("else", "^"):
            if not stack:
                raise ValueError("'else' outside of a block")
            block = stack[-1][0]
            if current is block.inverse:
                raise ValueError(f"duplicate 'else' in block {block.helper!r}")
            current = block.inverse
        elif expr.startswith("/"):
            name = expr[1:].strip()
            if not stack:
                raise ValueError(f"closing tag {name!r} without an open block")
            block, current = stack.pop()
            if block.helper != name:
                raise ValueError(f"block {block.helper!r} closed by {name!r}")
        else:
            current.append(_make_var(token))
    if stack:
        raise ValueError(f"unclosed block {stack[-1][0].helper!r}")
    return root


def _resolve(path: str, scope: _Scope) -> Any:
    if path.startswith("@"):
        return scope.locals.get(path[1:])
    while path.startswith("../"):
        path = path[3:]
        scope = scope.parent or scope
    if path in ("this", "."):
        return scope.value
    for prefix in ("this.", "./"):
        if path.startswith(prefix):
            path = path[len(prefix):]
    value = scope.value
    for part in path.split("."):
        if isinstance(value, Mapping):
            value = value.get(part)
        elif isinstance(value, (list, tuple)) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else None
        else:
            return None
        if value is None:
            return None
    return value


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def _render_block(block: _Block, scope: _Scope, out: list[str]) -> None:
    value = _resolve(block.arg, scope)
    if block.helper == "if":
        _render_nodes(block.body if value else block.inverse, scope, out)
    elif block.helper == "unless":
        _render_nodes(block.inverse if value else block.body, scope, out)
    elif block.helper == "with":
        if value:
            _render_nodes(block.body, _Scope(value, {}, scope), out)
        else:
            _render_nodes(block.inverse, scope, out)
    else:
        if isinstance(value, Mapping):
            items = [(key, item) for key, item in value.items()]
        elif isinstance(value, (list, tuple)):
            items = [(None, item) for item in value]
        else:
            items = []
        if not items:
            _render_nodes(block.inverse, scope, out)
            return
        last = len(items) - 1
        for index, (key, item) in enumerate(items):
            local_vars = {"index": index, "first": index == 0, "last": index == last}
            if key is not None:
                local_vars["key"] = key
            _render_nodes(block.body, _Scope(item, local_vars, scope), out)


def _render_nodes(nodes: list[_Node], scope: _Scope, out: list[str]) -> None:
    for node in nodes:
        if isinstance(node, str):
            out.append(node)
        elif isinstance(node, _Var):
            text = _stringify(_resolve(node.path, scope))
            out.append(text.translate(_ESCAPES) if node.escape else text)
        else:
            _render_block(node, scope, out)


def _render(nodes: list[_Node], data: Any) -> str:
    out: list[str] = []
    _render_nodes(nodes, _Scope(data, {}, None), out)
    return "".join(out)


def render_template(source: str, data: Any) -> str:
    """Render template text against ``data``; raise ValueError on bad syntax."""
    return _render(_compile(source), data)


class PromptManager:
    """Prompt templates stored as ``.hbs`` files in a directory, with built-in defaults."""

    def __init__(self, template_dir: str | Path) -> None:
        self.template_dir = Path(template_dir)
        self.template_dir.mkdir(parents=True, exist_ok=True)
        self._templates: dict[str, list[_Node]] = {}
        self._load_templates()
        self._register_defaults()

    def _load_templates(self) -> None:
        log.debug("Loading templates from %s", self.template_dir)
        for path in sorted(self.template_dir.iterdir()):
            if not (path.is_file() and path.suffix == TEMPLATE_SUFFIX):
                continue
            log.debug("Loading template: %s", path.stem)
            try:
                self._templates[path.stem] = _compile(path.read_text(encoding="utf-8"))
            except ValueError as exc:
                raise ValueError(f"Failed to register template '{path.stem}': {exc}") from exc

    def _register_defaults(self) -> None:
        for name, content in DEFAULT_TEMPLATES.items():
            if name in self._templates:
                continue
            log.debug("Registering default template: %s", name)
            try:
                self._templates[name] = _compile(content)
            except ValueError as exc:
                log.error("Failed to register default template %s: %s", name, exc)

    def render(self, template_name: str, data: Any) -> str:
        """Render a registered template with ``data``."""
        log.debug("Rendering template: %s", template_name)
        nodes = self._templates.get(template_name)
        if nodes is None:
            log.error("Failed to render template %s: not registered", template_name)
            raise ValueError(
                f"Failed to render template '{template_name}': template not found"
            )
        return _render(nodes, data)

    def add_template(self, name: str, content: str) -> None:
        """Register a template and save it to the template directory."""
        log.debug("Adding/updating template: %s", name)
        try:
            nodes = _compile(content)
        except ValueError as exc:
            log.error("Failed to register template %s: %s", name, exc)
            raise ValueError(f"Failed to register template '{name}': {exc}") from exc
        self._templates[name] = nodes
        (self.template_dir / f"{name}{TEMPLATE_SUFFIX}").write_text(content, encoding="utf-8")

    def has_template(self, name: str) -> bool:
        return name in self._templates

    def template_names(self) -> list[str]:
        return sorted(self._templates)


def default_manager() -> PromptManager:
    """A manager over the templates directory in the user's home."""
    return PromptManager(Path.home() / ".stageplan" / "templates")