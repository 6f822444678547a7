"""Secret templates.

Selectors and template files use `((` / `))` delimiters and address the
secret's data with a leading dot, e.g. `((.username))` or
`((.data.password))` for KV v2 mounts. Keys that are not identifiers
(`db-pass`) are reached with `index`: `((index .data "db-pass"))`.

Rendering is delegated to Jinja2. Dot references and `index` calls are
rewritten to subscripts on the data map before parsing, so keys that collide
with dict methods (`items`, `keys`) still resolve to the secret values.
Values print the way Go templates print them: `true`, `[a b]`,
`map[k:v]`, `<no value>`.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, StrictUndefined, Template, TemplateError

from core.errors import TemplateRenderError

LEFT_DELIM = "(("
RIGHT_DELIM = "))"

# Name the secret data is bound to inside the Jinja context.
DATA_NAME = "_"

_STRING = r'"(?:[^"\\]|\\.)*"|`[^`]*`'
_FIELD = r"\.(?:[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)?"
_OPERAND = rf"{_STRING}|-?\d+|{_FIELD}"

_ACTION_RE = re.compile(r"\(\((?!#)(.*?)\)\)", re.DOTALL)
_INDEX_RE = re.compile(rf"(?<![\w.])index((?:\s+(?:{_OPERAND}))+)")
_OPERAND_RE = re.compile(_OPERAND)
_TOKEN_RE = re.compile(
    rf"(?P<string>{_STRING}|'(?:[^'\\]|\\.)*')|(?<![\w\]\)'\"])(?P<field>{_FIELD})"
)


def _go_format(value: Any, nested: bool = False) -> str:
    if value is None:
        return "<nil>" if nested else "<no value>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_go_format(item, True) for item in value) + "]"
    if isinstance(value, dict):
        items = sorted((str(key), item) for key, item in value.items())
        return "map[" + " ".join(f"{key}:{_go_format(item, True)}" for key, item in items) + "]"
    return str(value)


def _finalize(value: Any) -> Any:
    # Undefined values pass through so StrictUndefined still raises.
    if value is None or isinstance(value, (bool, float, list, tuple, dict)):
        return _go_format(value)
    return value


def _get_env() -> Environment:
    return Environment(
        variable_start_string=LEFT_DELIM,
        variable_end_string=RIGHT_DELIM,
        block_start_string="((%",
        block_end_string="%))",
        comment_start_string="((#",
        comment_end_string="#))",
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
        finalize=_finalize,
    )


def _index_to_subscript(match: re.Match[str]) -> str:
    base, *keys = _OPERAND_RE.findall(match.group(1))
    return base + "".join(f"[{key}]" for key in keys)


def _token_to_jinja(match: re.Match[str]) -> str:
    string = match.group("string")
    if string is not None:
        # Raw `...` strings become ordinary Python literals.
        return repr(string[1:-1]) if string.startswith("`") else string

    chain = match.group("field")[1:]
    if not chain:
        return DATA_NAME
    return DATA_NAME + "".join(f"[{part!r}]" for part in chain.split("."))


def _translate_action(action: str) -> str:
    action = _INDEX_RE.sub(_index_to_subscript, action)
    return _TOKEN_RE.sub(_token_to_jinja, action)


def translate(source: str) -> str:
    """Rewrite `((.a.b))` to `((_['a']['b']))` and `((index . "k"))` to `((_["k"]))`."""

    return _ACTION_RE.sub(
        lambda m: LEFT_DELIM + _translate_action(m.group(1)) + RIGHT_DELIM,
        source,
    )


def compile_template(source: str, *, name: str = "secrets") -> Template:
    try:
        return _get_env().from_string(translate(source))
    except TemplateError as exc:
        raise TemplateRenderError(f"Could not parse template {name} '{source}': {exc}") from exc


def validate_selector(selector: str) -> None:
    """Raise `TemplateRenderError` when the selector does not parse."""

    try:
        _get_env().parse(translate(selector))
    except TemplateError as exc:
        raise TemplateRenderError(f"Could not parse template selector '{selector}': {exc}") from exc


def render(template: Template, data: Mapping[str, Any], *, name: str = "secrets") -> str:
    try:
        return template.render({DATA_NAME: dict(data)})
    except TemplateError as exc:
        raise TemplateRenderError(f"Could not render template {name}: {exc}") from exc


def render_selector(selector: str, data: Mapping[str, Any]) -> str:
    """Render a selector like `((.username)) ((.password))` against secret data."""

    template = compile_template(selector, name="selector")
    return render(template, data, name=f"selector '{selector}'")


def render_file(path: Path, data: Mapping[str, Any]) -> Path:
    """Render a template file in place.

    The file is only rewritten once rendering succeeded, so a missing key
    leaves the original template untouched.
    """

    try:
        source = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateRenderError(f"Could not parse template file '{path}': {exc}") from exc

    template = compile_template(source, name=f"file '{path.name}'")
    rendered = render(template, data, name=f"file '{path}'")

    try:
        path.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise TemplateRenderError(f"Could not render parsed template content '{path}' to disk: {exc}") from exc
    return path
