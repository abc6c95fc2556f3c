"""Rewrite the Liquid tag and filter dialect used by themes into Jinja syntax.

Themes are authored with Liquid conventions (``{% assign %}``, ``| filter:
arg``, ``{% render 'snippet' %}``). The Jinja execution engine understands a
close relative of that syntax, so before compiling a source the markup inside
``{{ ... }}`` and ``{% ... %}`` delimiters is rewritten:

- ``assign``/``capture``/``unless``/``elsif``/``echo`` map to their Jinja
  counterparts;
- ``render``/``include``/``section``/``sections`` become calls to the
  ``render_snippet``/``render_section``/``render_section_group`` globals;
- ``| name: a, key: b`` becomes ``| name(a, key=b)``;
- ``a contains b`` becomes ``b in a``, ``forloop`` becomes ``loop`` and
  ``(1..n)`` ranges become ``range(1, n + 1)``;
- ``case``/``when`` chains become ``if``/``elif`` tests and ``{% liquid %}``
  statements are expanded into one tag per line;
- ``for`` loop ``reversed``, ``offset:`` and ``limit:`` parameters become list
  slicing, and ``tablerow`` becomes a loop emitting table rows and cells;
- ``cycle``, ``increment`` and ``decrement`` call the ``liquid_cycle`` and
  ``liquid_counter`` globals;
- ``break`` and ``continue`` pass through to the loop controls extension.

Anything already written in Jinja syntax passes through unchanged.

Examples
--------
>>> translate_liquid("{% assign x = 'a' | upcase %}{{ x | append: '!' }}")
"{% set x = 'a' | upcase %}{{ x | append('!') }}"
>>> translate_liquid("{% render 'price', product: product %}")
"{{ render_snippet('price', product=product) }}"
"""

from __future__ import annotations

import re

TAG_PATTERN = re.compile(r"\{%(-?)(.*?)(-?)%\}", re.DOTALL)
OUTPUT_PATTERN = re.compile(r"\{\{(-?)(.*?)(-?)\}\}", re.DOTALL)
RAW_BLOCK_PATTERN = re.compile(
    r"\{%-?\s*raw\s*-?%\}.*?\{%-?\s*endraw\s*-?%\}", re.DOTALL
)
CONTAINS_PATTERN = re.compile(
    r"""([\w.\[\]'"]+)\s+contains\s+('[^']*'|"[^"]*"|[\w.\[\]]+)"""
)
RANGE_PATTERN = re.compile(r"\(\s*([\w.]+)\s*\.\.\s*([\w.]+)\s*\)")
NAMED_ARG_PATTERN = re.compile(r"^\s*([A-Za-z_][\w-]*)\s*:\s*(.+)$", re.DOTALL)
RENDER_PATTERN = re.compile(
    r"""^(?:render|include)\s+('[^']*'|"[^"]*"|[\w-]+)\s*"""
    r"""(?:(with|for)\s+([\w.\[\]'"]+)(?:\s+as\s+(\w+))?)?\s*,?\s*(.*)$""",
    re.DOTALL,
)
SECTION_TAG_PATTERN = re.compile(r"""^(sections?)\s+['"]?([\w-]+)['"]?\s*$""")
FOR_PATTERN = re.compile(
    r"^(?P<var>\w+(?:\s*,\s*\w+)*)\s+in\s+(?P<seq>\([^)]*\)|\S+)(?P<params>.*)$", re.DOTALL
)
FOR_OPTION_PATTERN = re.compile(r"\b(limit|offset|cols)\s*:\s*([\w.]+)")
FOR_PARAMETERS_PATTERN = re.compile(
    r"(?:[\s,]+(?:reversed|(?:limit|offset|cols)\s*:\s*[\w.]+))*\s*"
)
WHEN_TOKEN_PATTERN = re.compile(r"""'[^']*'|"[^"]*"|[^,\s]+""")
CYCLE_GROUP_PATTERN = re.compile(r"""^('[^']*'|"[^"]*"|\w+)\s*:\s*(.+)$""", re.DOTALL)

_SIMPLE_TAGS = {
    "endunless": "endif",
    "endcapture": "endset",
    "elsif": "elif",
}


def _split_outside_quotes(text: str, separator: str) -> list[str]:
    """Split ``text`` on ``separator`` ignoring separators inside quotes."""
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    depth = 0
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in "'\"":
            quote = char
        elif char in "([":
            depth += 1
        elif char in ")]":
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _translate_arguments(text: str) -> str:
    """Turn ``a, key: b`` into ``a, key=b``."""
    args: list[str] = []
    for raw in _split_outside_quotes(text, ","):
        item = raw.strip()
        if not item:
            continue
        match = NAMED_ARG_PATTERN.match(item)
        if match and item[0] not in "'\"":
            name = match.group(1).replace("-", "_")
            args.append(f"{name}={_translate_expression(match.group(2).strip())}")
        else:
            args.append(_translate_expression(item))
    return ", ".join(args)


def _translate_filters(expression: str) -> str:
    segments = _split_outside_quotes(expression, "|")
    head, filters = segments[0], segments[1:]
    translated = [head.rstrip()]
    for segment in filters:
        name, colon, arguments = segment.partition(":")
        name = name.strip()
        if colon and re.fullmatch(r"[A-Za-z_]\w*", name):
            translated.append(f" {name}({_translate_arguments(arguments)})")
        else:
            translated.append(f" {segment.strip()}")
    return " |".join(translated)


def _translate_expression(expression: str) -> str:
    """Rewrite operators and filter calls inside one expression."""
    if "|" in expression:
        expression = _translate_filters(expression)
    expression = CONTAINS_PATTERN.sub(r"\2 in \1", expression)
    expression = RANGE_PATTERN.sub(r"range(\1, \2 + 1)", expression)
    return re.sub(r"\bforloop\.", "loop.", expression)


def _render_call(body: str) -> str | None:
    match = RENDER_PATTERN.match(body)
    if match is None:
        return None
    name, mode, subject, alias, rest = match.groups()
    if name[0] not in "'\"":
        if name == "block":
            return "{{ block.shopify_attributes }}"
        name = repr(name)
    arguments = _translate_arguments(rest) if rest.strip() else ""
    snippet = name.strip("'\"")
    variable = alias or snippet.rsplit("/", 1)[-1].replace("-", "_")
    if mode == "for":
        call_args = ", ".join(filter(None, [name, f"{variable}={variable}", arguments]))
        return (
            f"{{% for {variable} in {_translate_expression(subject)} %}}"
            f"{{{{ render_snippet({call_args}) }}}}{{% endfor %}}"
        )
    parts = [name]
    if mode == "with":
        parts.append(f"{variable}={_translate_expression(subject)}")
    if arguments:
        parts.append(arguments)
    return f"{{{{ render_snippet({', '.join(parts)}) }}}}"


def _when_values(text: str) -> list[str]:
    """Split ``'a', 'b' or c`` into translated value expressions."""
    return [
        _translate_expression(token)
        for token in WHEN_TOKEN_PATTERN.findall(text)
        if token != "or"
    ]


def _slice_sequence(sequence: str, parameters: str) -> str:
    """Apply ``reversed``/``offset:``/``limit:`` loop parameters to ``sequence``.

    Reversal happens before slicing.

    Examples
    --------
    >>> _slice_sequence("items", " limit: 2 offset: 1")
    '((items or []) | list)[1:1 + 2]'
    >>> _slice_sequence("items", " reversed")
    '((items or []) | list | reverse | list)'
    """
    options = dict(FOR_OPTION_PATTERN.findall(parameters))
    reverse = bool(re.search(r"\breversed\b", parameters))
    if not options and not reverse:
        return sequence
    pipeline = f"(({sequence} or []) | list{' | reverse | list' if reverse else ''})"
    offset = options.get("offset", "")
    offset = "" if offset in {"", "continue", "0"} else _translate_expression(offset)
    limit = options.get("limit", "")
    limit = _translate_expression(limit) if limit else ""
    if limit and offset:
        return f"{pipeline}[{offset}:{offset} + {limit}]"
    if limit:
        return f"{pipeline}[:{limit}]"
    if offset:
        return f"{pipeline}[{offset}:]"
    return pipeline


def _for_header(rest: str) -> str | None:
    """Translate ``item in seq [parameters]`` or return ``None`` when not Liquid."""
    match = FOR_PATTERN.match(rest)
    if match is None or not FOR_PARAMETERS_PATTERN.fullmatch(match.group("params")):
        return None
    sequence = _translate_expression(match.group("seq"))
    return f"{match.group('var')} in {_slice_sequence(sequence, match.group('params'))}"


class _LiquidTranslator:
    """Translate one source; ``case`` subjects are tracked across tags."""

    __slots__ = ("case_subjects",)

    def __init__(self) -> None:
        self.case_subjects: list[str] = []

    def tag(self, match: re.Match[str]) -> str:
        left, body, right = match.groups()
        return self.translate_tag(left, body, right)

    def translate_tag(  # noqa: C901, PLR0911, PLR0912
        self, left: str, body: str, right: str
    ) -> str:
        stripped = body.strip()
        parts = stripped.split(None, 1)
        keyword = parts[0] if parts else ""
        rest = parts[1].strip() if len(parts) > 1 else ""

        if keyword == "liquid":
            return self.liquid_lines(rest)
        if keyword in _SIMPLE_TAGS:
            replacement = _SIMPLE_TAGS[keyword]
            if rest:
                replacement = f"{replacement} {_translate_expression(rest)}"
            return f"{{%{left} {replacement} {right}%}}"
        if keyword == "case":
            self.case_subjects.append(_translate_expression(rest))
            return f"{{%{left} if false {right}%}}"
        if keyword == "when" and self.case_subjects:
            subject = self.case_subjects[-1]
            values = _when_values(rest)
            test = (
                f"{subject} == {values[0]}"
                if len(values) == 1
                else f"{subject} in [{', '.join(values)}]"
            )
            return f"{{%{left} elif {test} {right}%}}"
        if keyword == "endcase" and self.case_subjects:
            self.case_subjects.pop()
            return f"{{%{left} endif {right}%}}"
        if keyword in {"render", "include"}:
            call = _render_call(stripped)
            if call is not None:
                return call
        if keyword in {"section", "sections"}:
            section = SECTION_TAG_PATTERN.match(stripped)
            if section is not None:
                helper = "render_section_group" if keyword == "sections" else "render_section"
                return f"{{{{{left} {helper}('{section.group(2)}') {right}}}}}"
        if keyword == "form":
            form_type = rest.partition(",")[0].strip().strip("'\"") or "form"
            return (
                f'<form method="post" accept-charset="UTF-8" class="form-{form_type}">'
            )
        if keyword == "endform":
            return "</form>"
        if keyword in {"layout", "paginate", "endpaginate"}:
            return ""
        if keyword == "echo":
            return f"{{{{{left} {_translate_expression(rest)} {right}}}}}"
        if keyword == "assign":
            return f"{{%{left} set {_translate_expression(rest)} {right}%}}"
        if keyword == "capture":
            return f"{{%{left} set {rest} {right}%}}"
        if keyword == "unless":
            return f"{{%{left} if not ({_translate_expression(rest)}) {right}%}}"
        if keyword in {"increment", "decrement"}:
            step = 1 if keyword == "increment" else -1
            return f"{{{{{left} liquid_counter({rest!r}, {step}) {right}}}}}"
        if keyword == "cycle":
            group = CYCLE_GROUP_PATTERN.match(rest)
            name, values = (group.group(1), group.group(2)) if group else (repr(rest), rest)
            items = ", ".join(
                _translate_expression(value.strip())
                for value in _split_outside_quotes(values, ",")
            )
            return f"{{{{{left} liquid_cycle({name}, [{items}]) {right}}}}}"
        if keyword == "tablerow":
            return self.tablerow(left, rest, right)
        if keyword == "endtablerow":
            return (
                "</td>{% if tablerowloop.col_last or loop.last %}</tr>{% endif %}"
                f"{{%{left} endfor {right}%}}"
            )
        if keyword == "for":
            header = _for_header(rest)
            if header is not None:
                return f"{{%{left} for {header} {right}%}}"
        if keyword in {"if", "elif", "for"}:
            return f"{{%{left} {keyword} {_translate_expression(rest)} {right}%}}"
        return f"{{%{left}{body}{right}%}}"

    def tablerow(self, left: str, rest: str, right: str) -> str:
        match = FOR_PATTERN.match(rest)
        if match is None:
            return f"{{%{left} tablerow {rest} {right}%}}"
        parameters = match.group("params")
        options = dict(FOR_OPTION_PATTERN.findall(parameters))
        columns = _translate_expression(options["cols"]) if "cols" in options else "none"
        sequence = _slice_sequence(_translate_expression(match.group("seq")), parameters)
        if not sequence.startswith("(("):
            sequence = f"(({sequence} or []) | list)"
        return (
            f"{{%{left} for {match.group('var')} in {sequence} {right}%}}"
            f"{{% set tablerowloop = tablerow_state(loop, {columns}) %}}"
            '{% if tablerowloop.col_first %}<tr class="row{{ tablerowloop.row }}">{% endif %}'
            '<td class="col{{ tablerowloop.col }}">'
        )

    def liquid_lines(self, text: str) -> str:
        """Expand the statements of a ``{% liquid %}`` tag, one per line."""
        pieces: list[str] = []
        in_comment = False
        for line in text.splitlines():
            statement = line.strip()
            if not statement or statement.startswith("#"):
                continue
            keyword = statement.split(None, 1)[0]
            if keyword == "comment":
                in_comment = True
                continue
            if keyword == "endcomment":
                in_comment = False
                continue
            if in_comment:
                continue
            pieces.append(self.translate_tag("-", f" {statement} ", "-"))
        return "".join(pieces)

    def segment(self, source: str) -> str:
        source = TAG_PATTERN.sub(self.tag, source)
        return OUTPUT_PATTERN.sub(_translate_output, source)


def _translate_output(match: re.Match[str]) -> str:
    left, body, right = match.groups()
    return f"{{{{{left} {_translate_expression(body.strip())} {right}}}}}"


def translate_liquid(source: str) -> str:
    """Rewrite Liquid tags and filter calls in ``source`` into Jinja syntax.

    ``{% raw %}`` blocks are copied verbatim.
    """
    translator = _LiquidTranslator()
    pieces: list[str] = []
    position = 0
    for raw in RAW_BLOCK_PATTERN.finditer(source):
        pieces.append(translator.segment(source[position : raw.start()]))
        pieces.append(raw.group(0))
        position = raw.end()
    pieces.append(translator.segment(source[position:]))
    return "".join(pieces)


__all__ = ["translate_liquid"]
