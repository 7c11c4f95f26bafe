"""Line-oriented parsers for export and import statements in JS/TS sources."""

import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from diagnostics.models import ExportKind, ImportKind


# export [declare] [async] const|let|var|function|class|interface|type|enum Name
NAMED_EXPORT_RE = re.compile(
    r"^export\s+(?:declare\s+)?(?:async\s+)?"
    r"(const\s+enum|const|let|var|function\*?|abstract\s+class|class|interface|type|enum)"
    r"\s+([A-Za-z_$][\w$]*)"
)

# export default [async] [function|class] [Name]
DEFAULT_EXPORT_RE = re.compile(
    r"^export\s+default\s+(?:async\s+)?(?:(function\*?|abstract\s+class|class|interface)\b\s*)?"
    r"([A-Za-z_$][\w$]*)?"
)

# export [type] { a, b as c } [from '...']
EXPORT_LIST_RE = re.compile(r"^export\s+(type\s+)?\{([^}]*)\}")

# export * as ns from '...'
NAMESPACE_EXPORT_RE = re.compile(r"^export\s+\*\s+as\s+([A-Za-z_$][\w$]*)")

# Keywords that may follow "export default" without naming anything
_DEFAULT_NON_NAMES = {
    "new", "await", "async", "function", "class", "extends", "null", "undefined", "true", "false",
}

_SPEC = r"""['"]([^'"]+)['"]"""

# import <clause> from '<spec>'   (clause may be default, { named }, * as ns, or mixed;
# a braced clause may span several lines)
STATIC_IMPORT_RE = re.compile(r"""^\s*import\s+(type\s+)?([^;'"()=]+?)\s+from\s+""" + _SPEC, re.MULTILINE)

# /* ... */ closed on the same line
_INLINE_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/")

# import '<spec>'
SIDE_EFFECT_IMPORT_RE = re.compile(r"^\s*import\s+" + _SPEC, re.MULTILINE)

# export { a, b } from '<spec>' / export * from '<spec>' / export * as ns from '<spec>'
REEXPORT_RE = re.compile(
    r"^\s*export\s+(?:type\s+)?(\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s+from\s+" + _SPEC,
    re.MULTILINE,
)

# const|let|var <binding> = require('<spec>')
REQUIRE_BINDING_RE = re.compile(
    r"(?:const|let|var)\s+(\{[^}]*\}|[A-Za-z_$][\w$]*)\s*=\s*require\s*\(\s*" + _SPEC + r"\s*\)"
)

# require('<spec>') anywhere, including bare side-effect requires
REQUIRE_BARE_RE = re.compile(r"\brequire\s*\(\s*" + _SPEC + r"\s*\)")

# import('<spec>')
DYNAMIC_IMPORT_RE = re.compile(r"\bimport\s*\(\s*" + _SPEC + r"\s*\)")


@dataclass(frozen=True)
class ParsedExport:
    """An export found on one line, before it is bound to a file."""

    name: str
    kind: ExportKind
    category: str
    line: int
    column: int
    snippet: str


@dataclass(frozen=True)
class ParsedImport:
    """One imported binding, before its specifier is resolved."""

    specifier: str
    import_name: str
    local_name: str
    kind: ImportKind
    line: int
    column: int
    snippet: str
    reexport: bool = False


def _blank_out(text: str) -> str:
    return " " * len(text)


def iter_code_lines(content: str) -> Iterator[Tuple[int, str]]:
    """
    Yield (1-based line number, line) for lines that still hold code once
    comments are removed.

    Block comments are blanked with spaces so columns stay put; code before
    an opening ``/*`` or after a closing ``*/`` on the same line is kept.
    """
    in_block = False
    for index, line in enumerate(content.splitlines(), start=1):
        if in_block:
            end = line.find("*/")
            if end == -1:
                continue
            in_block = False
            line = _blank_out(line[:end + 2]) + line[end + 2:]
        line = _INLINE_BLOCK_COMMENT_RE.sub(lambda m: _blank_out(m.group(0)), line)
        opening = line.find("/*")
        if opening != -1 and "//" not in line[:opening]:
            in_block = True
            line = line[:opening]
        stripped = line.strip()
        if not stripped or stripped.startswith("//") or stripped.startswith("*"):
            continue
        yield index, line


def _split_names(body: str) -> List[Tuple[str, str]]:
    """
    Split the inside of ``{ a, b as c, type D }`` into (original, alias) pairs.
    """
    pairs: List[Tuple[str, str]] = []
    for item in body.split(","):
        item = item.strip()
        if not item:
            continue
        if item.startswith("type "):
            item = item[5:].strip()
        original, _, alias = item.partition(" as ")
        original = original.strip()
        alias = alias.strip() or original
        if original:
            pairs.append((original, alias))
    return pairs


def _category(keyword: str) -> str:
    """Normalize a declaration keyword to its category name."""
    keyword = " ".join(keyword.split())
    if keyword.startswith("function"):
        return "function"
    if keyword.endswith("class"):
        return "class"
    if keyword.endswith("enum"):
        return "enum"
    return keyword


def parse_export_line(line: str, line_number: int, original_line: str) -> List[ParsedExport]:
    """
    Parse one stripped source line into zero or more exports.

    Patterns are tried in order: named declaration, default, export list,
    namespace re-export. ``export * from`` carries no names and yields nothing.

    Args:
        line: The stripped line.
        line_number: 1-based line number.
        original_line: The raw line, used for column and snippet.

    Returns:
        List of ParsedExport (one per exported name).
    """
    column = original_line.find("export") + 1
    snippet = original_line.strip()

    match = NAMED_EXPORT_RE.match(line)
    if match:
        keyword, name = match.groups()
        return [ParsedExport(name, ExportKind.NAMED, _category(keyword), line_number, column, snippet)]

    if line.startswith("export default"):
        match = DEFAULT_EXPORT_RE.match(line)
        keyword, name = match.groups() if match else (None, None)
        if name and not keyword and line[match.end():].lstrip().startswith(("(", ".", "[")):
            # export default connect(...)(View), export default a.b
            name = None
        if not name or name in _DEFAULT_NON_NAMES:
            name = "default"
        category = _category(keyword) if keyword else ""
        return [ParsedExport(name, ExportKind.DEFAULT, category, line_number, column, snippet)]

    match = EXPORT_LIST_RE.match(line)
    if match:
        type_only, body = match.groups()
        exports: List[ParsedExport] = []
        for original, alias in _split_names(body):
            if alias == "default":
                exports.append(
                    ParsedExport(original, ExportKind.DEFAULT, "", line_number, column, snippet)
                )
            else:
                exports.append(
                    ParsedExport(alias, ExportKind.NAMED, "type" if type_only else "", line_number, column, snippet)
                )
        return exports

    match = NAMESPACE_EXPORT_RE.match(line)
    if match:
        return [ParsedExport(match.group(1), ExportKind.NAMESPACE, "", line_number, column, snippet)]

    return []


def parse_exports(content: str) -> List[ParsedExport]:
    """Parse every export declaration in a file's text."""
    exports: List[ParsedExport] = []
    for line_number, raw in iter_code_lines(content):
        stripped = raw.strip()
        if not stripped.startswith("export"):
            continue
        exports.extend(parse_export_line(stripped, line_number, raw))
    return exports


def _classify_import_clause(clause: str) -> List[Tuple[str, str, ImportKind]]:
    """
    Classify the bindings of a static import clause.

    Returns:
        List of (import_name, local_name, kind).
    """
    bindings: List[Tuple[str, str, ImportKind]] = []
    clause = " ".join(clause.split())

    brace_start = clause.find("{")
    if brace_start != -1:
        head = clause[:brace_start].rstrip().rstrip(",").strip()
        body = clause[brace_start + 1: clause.rfind("}")]
        if head:
            bindings.append(("default", head, ImportKind.DEFAULT))
        for original, alias in _split_names(body):
            if original == "default":
                bindings.append(("default", alias, ImportKind.DEFAULT))
            else:
                bindings.append((original, alias, ImportKind.NAMED))
        return bindings

    star = clause.find("*")
    if star != -1:
        head = clause[:star].rstrip().rstrip(",").strip()
        if head:
            bindings.append(("default", head, ImportKind.DEFAULT))
        local = clause[star + 1:].strip()
        if local.startswith("as "):
            local = local[3:].strip()
        bindings.append(("*", local, ImportKind.NAMESPACE))
        return bindings

    if clause:
        return [("default", clause, ImportKind.DEFAULT)]
    return [("*", "", ImportKind.SIDE_EFFECT)]


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _column_of(content: str, offset: int) -> int:
    return offset - (content.rfind("\n", 0, offset) + 1) + 1


def _snippet_at(lines: List[str], line_number: int) -> str:
    if 0 < line_number <= len(lines):
        return lines[line_number - 1].strip()
    return ""


def _comment_mask(content: str) -> str:
    """Blank out comments while keeping offsets and line breaks intact."""
    def _blank(match: "re.Match[str]") -> str:
        return re.sub(r"[^\n]", " ", match.group(0))

    return re.sub(r"/\*.*?\*/|//[^\n]*", _blank, content, flags=re.DOTALL)


def parse_imports(content: str) -> List[ParsedImport]:
    """
    Find static, side-effect, re-export, CommonJS and dynamic imports.

    Each imported binding becomes one ParsedImport. The order of the result
    follows the order of appearance in the file.

    Args:
        content: Full file text.

    Returns:
        List of ParsedImport.
    """
    code = _comment_mask(content)
    lines = content.splitlines()
    found: List[Tuple[int, int, ParsedImport]] = []
    claimed: List[Tuple[int, int]] = []

    def _add(offset: int, order: int, specifier: str, import_name: str, local: str,
             kind: ImportKind, reexport: bool = False) -> None:
        line = _line_of(code, offset)
        found.append((
            offset,
            order,
            ParsedImport(
                specifier=specifier,
                import_name=import_name,
                local_name=local,
                kind=kind,
                line=line,
                column=_column_of(code, offset),
                snippet=_snippet_at(lines, line),
                reexport=reexport,
            ),
        ))

    def _is_claimed(start: int) -> bool:
        return any(s <= start < e for s, e in claimed)

    for match in STATIC_IMPORT_RE.finditer(code):
        start = match.start() + (len(match.group(0)) - len(match.group(0).lstrip()))
        clause, specifier = match.group(2), match.group(3)
        for order, (name, local, kind) in enumerate(_classify_import_clause(clause)):
            _add(start, order, specifier, name, local, kind)
        claimed.append((match.start(), match.end()))

    for match in SIDE_EFFECT_IMPORT_RE.finditer(code):
        start = match.start() + (len(match.group(0)) - len(match.group(0).lstrip()))
        _add(start, 0, match.group(1), "*", "", ImportKind.SIDE_EFFECT)

    for match in REEXPORT_RE.finditer(code):
        start = match.start() + (len(match.group(0)) - len(match.group(0).lstrip()))
        what, specifier = match.group(1), match.group(2)
        if what.startswith("*"):
            local = what[1:].strip()
            if local.startswith("as "):
                local = local[3:].strip()
            _add(start, 0, specifier, "*", local, ImportKind.NAMESPACE, reexport=True)
        else:
            for order, (original, alias) in enumerate(_split_names(what.strip("{}"))):
                kind = ImportKind.DEFAULT if original == "default" else ImportKind.NAMED
                _add(start, order, specifier, original, alias, kind, reexport=True)

    for match in REQUIRE_BINDING_RE.finditer(code):
        binding, specifier = match.group(1), match.group(2)
        if binding.startswith("{"):
            pairs = [(o, a) for o, a in _split_names(binding.strip("{}").replace(":", " as "))]
            for order, (original, alias) in enumerate(pairs):
                _add(match.start(), order, specifier, original, alias, ImportKind.NAMED)
        else:
            _add(match.start(), 0, specifier, "*", binding, ImportKind.NAMESPACE)
        claimed.append((match.start(), match.end()))

    for match in REQUIRE_BARE_RE.finditer(code):
        if _is_claimed(match.start()):
            continue
        _add(match.start(), 0, match.group(1), "*", "", ImportKind.SIDE_EFFECT)

    for match in DYNAMIC_IMPORT_RE.finditer(code):
        _add(match.start(), 0, match.group(1), "*", "", ImportKind.DYNAMIC)

    found.sort(key=lambda item: (item[0], item[1]))
    return [item[2] for item in found]
