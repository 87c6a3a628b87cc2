"""Rust-like bridge declaration parser"""

import re
import string
from typing import Optional

from .diagnostics import DeclarationSyntaxError
from .types import (
    Param, Member, Record, Variant, Enum, FunctionDecl, ParsedIDL, TypeExpr,
    REF, MUT_REF, UNIT, TUPLE, SLICE, ARRAY, IMPL, DYN,
)


_RECORD_RE = re.compile(
    r'(?:pub\s+)?record\s+(\w+)\s*(?:<([^<>{]*)>)?\s*(display(?:\s+"((?:[^"\\]|\\.)*)")?)?\s*\{')
_ENUM_RE = re.compile(r'(?:pub\s+)?enum\s+(\w+)\s*(?:<([^<>{]*)>)?\s*(display)?\s*\{')
_FN_RE = re.compile(r'(?:pub\s+)?(async\s+)?fn\s+(\w+)\s*(?:<([^(]*)>)?\s*\(')

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<lifetime>'[A-Za-z_]\w*)"
    r"|(?P<ident>[A-Za-z_]\w*(?:\s*::\s*[A-Za-z_]\w*)*)"
    r"|(?P<number>\d+)"
    r"|(?P<punct>[<>,&()\[\];]))"
)

_OPENERS = {'<': '>', '(': ')', '[': ']', '{': '}'}
_CLOSERS = {v: k for k, v in _OPENERS.items()}

# Names the classifier gives a fixed meaning to; declarations may not reuse them
RESERVED_TYPE_NAMES = {
    'bool', 'char', 'str', 'String',
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'f32', 'f64', 'Option', 'Result', 'Vec',
}


class IDLParser:
    """Parses Rust-like function, record and enum declarations"""

    def __init__(self, content: str):
        self.content = self._strip_comments(content)

    def _strip_comments(self, content: str) -> str:
        content = re.sub(r'//.*$', '', content, flags=re.MULTILINE)
        # Keep newlines so reported line numbers stay accurate
        content = re.sub(r'/\*.*?\*/', lambda m: "\n" * m.group(0).count("\n"),
                         content, flags=re.DOTALL)
        return content

    def _line_at(self, pos: int) -> int:
        return self.content.count("\n", 0, pos) + 1

    def parse(self) -> ParsedIDL:
        result = ParsedIDL()
        pos = 0
        text = self.content
        while True:
            while pos < len(text) and (text[pos].isspace() or text[pos] == ';'):
                pos += 1
            if pos >= len(text):
                break

            if m := _RECORD_RE.match(text, pos):
                pos = self._parse_record(m, result)
            elif m := _ENUM_RE.match(text, pos):
                pos = self._parse_enum(m, result)
            elif m := _FN_RE.match(text, pos):
                pos = self._parse_function(m, result)
            else:
                snippet = text[pos:].split("\n", 1)[0].strip()
                raise DeclarationSyntaxError(f"unexpected input '{snippet}'", self._line_at(pos))

        self._check_type_names(result)
        return result

    def _parse_record(self, m: re.Match, result: ParsedIDL) -> int:
        line = self._line_at(m.start())
        name = m.group(1)
        end = self._find_closing(m.end() - 1, line)
        params = self._parse_type_params(m.group(2), f"record {name}", line)
        members = self._parse_members(self.content[m.end():end], line, f"record {name}")

        template = None
        if m.group(4) is not None:
            template = m.group(4).replace('\\"', '"').replace('\\\\', '\\')
            self._check_template(template, members, name, line)

        result.records.append(Record(
            name=name,
            members=members,
            params=params,
            display=m.group(3) is not None,
            display_template=template,
            line=line,
        ))
        return end + 1

    def _parse_enum(self, m: re.Match, result: ParsedIDL) -> int:
        line = self._line_at(m.start())
        name = m.group(1)
        end = self._find_closing(m.end() - 1, line)
        variants = []
        for part in _split_top_level(self.content[m.end():end], ','):
            part = part.strip()
            if not part:
                continue
            vm = re.match(r'^(\w+)\s*(?:\{(.*)\})?$', part, flags=re.DOTALL)
            if not vm:
                raise DeclarationSyntaxError(
                    f"invalid variant '{part}' in enum {name} (use 'Name' or 'Name {{ field: Type }}')", line)
            members = self._parse_members(vm.group(2) or "", line, f"variant {name}::{vm.group(1)}")
            variants.append(Variant(name=vm.group(1), members=members))

        if not variants:
            raise DeclarationSyntaxError(f"enum {name} has no variants", line)
        if len({v.name for v in variants}) != len(variants):
            raise DeclarationSyntaxError(f"duplicate variant in enum {name}", line)

        enum = Enum(name=name, variants=variants, display=m.group(3) is not None, line=line,
                    params=self._parse_type_params(m.group(2), f"enum {name}", line))
        if enum.params and enum.is_unit_only:
            raise DeclarationSyntaxError(f"enum {name} has only unit variants and cannot take type parameters", line)
        result.enums.append(enum)
        return end + 1

    def _parse_type_params(self, text: Optional[str], owner: str, line: int) -> list[str]:
        """Type parameter names of a generic record or enum; lifetimes and bounds are dropped"""
        params = []
        for part in _split_top_level(text or "", ','):
            part = part.split(':', 1)[0].strip()
            if not part or part.startswith("'"):
                continue
            if not re.match(r'^[A-Za-z_]\w*$', part):
                raise DeclarationSyntaxError(f"invalid type parameter '{part}' in {owner}", line)
            if part in params:
                raise DeclarationSyntaxError(f"duplicate type parameter '{part}' in {owner}", line)
            params.append(part)
        return params

    def _parse_function(self, m: re.Match, result: ParsedIDL) -> int:
        line = self._line_at(m.start())
        close = self._find_closing(m.end() - 1, line)
        params = self._parse_params(self.content[m.end():close], line)

        end = _find_top_level(self.content, close + 1, ';')
        if end < 0:
            raise DeclarationSyntaxError(f"missing ';' after fn {m.group(2)}", line)
        tail = self.content[close + 1:end].strip()

        return_type = None
        if tail:
            if not tail.startswith('->'):
                raise DeclarationSyntaxError(f"unexpected '{tail}' after parameters of fn {m.group(2)}", line)
            return_type = parse_type(tail[2:], line)

        result.functions.append(FunctionDecl(
            name=m.group(2),
            params=params,
            return_type=return_type,
            is_async=m.group(1) is not None,
            generics=m.group(3).strip() if m.group(3) is not None else None,
            line=line,
        ))
        return end + 1

    def _parse_members(self, body: str, line: int, owner: str) -> list[Member]:
        members = []
        for part in _split_top_level(body, ','):
            part = part.strip()
            if not part:
                continue
            mm = re.match(r'^(?:pub\s+)?(\w+)\s*:\s*(.+)$', part, flags=re.DOTALL)
            if not mm:
                raise DeclarationSyntaxError(f"invalid field '{part}' in {owner}", line)
            members.append(Member(name=mm.group(1), type=parse_type(mm.group(2), line)))
        if len({mb.name for mb in members}) != len(members):
            raise DeclarationSyntaxError(f"duplicate field in {owner}", line)
        return members

    def _parse_params(self, params_str: str, line: int) -> list[Param]:
        params = []
        for p in _split_top_level(params_str, ','):
            p = p.strip()
            if not p:
                continue

            # self, &self, &'a mut self, mut self, self: Box<Self>
            if re.match(r"^(?:&\s*(?:'\w+\s+)?)?(?:mut\s+)?self\s*(?::.*)?$", p, flags=re.DOTALL):
                params.append(Param(name="self", type=None, form="receiver"))
            elif m := re.match(r'^(?:mut\s+)?([A-Za-z_]\w*)\s*:(?!:)\s*(.+)$', p, flags=re.DOTALL):
                params.append(Param(name=m.group(1), type=parse_type(m.group(2), line)))
            else:
                colon = _find_top_level(p, 0, ':')
                if colon <= 0:
                    raise DeclarationSyntaxError(f"invalid parameter '{p}'", line)
                params.append(Param(
                    name=p[:colon].strip(),
                    type=parse_type(p[colon + 1:], line),
                    form="pattern",
                ))
        return params

    def _find_closing(self, open_pos: int, line: int) -> int:
        close = _find_top_level(self.content, open_pos + 1, _OPENERS[self.content[open_pos]])
        if close < 0:
            raise DeclarationSyntaxError(f"unbalanced '{self.content[open_pos]}'", line)
        return close

    def _check_template(self, template: str, members: list[Member], name: str, line: int):
        fields = {mb.name for mb in members}
        try:
            parsed = list(string.Formatter().parse(template))
        except ValueError as e:
            raise DeclarationSyntaxError(f"invalid display template of record {name}: {e}", line) from e
        for _, field_name, _, _ in parsed:
            if field_name is None:
                continue
            root = re.split(r'[.\[]', field_name, maxsplit=1)[0]
            if root not in fields:
                raise DeclarationSyntaxError(
                    f"display template of record {name} refers to unknown field '{field_name}'", line)

    def _check_type_names(self, result: ParsedIDL):
        seen = {}
        for decl in [*result.records, *result.enums]:
            if decl.name in RESERVED_TYPE_NAMES:
                raise DeclarationSyntaxError(f"type name '{decl.name}' shadows a built-in type", decl.line)
            if decl.name in seen:
                raise DeclarationSyntaxError(
                    f"type '{decl.name}' already declared on line {seen[decl.name]}", decl.line)
            seen[decl.name] = decl.line
        for decl in [*result.records, *result.enums]:
            for param in decl.params:
                if param in RESERVED_TYPE_NAMES or param in seen:
                    raise DeclarationSyntaxError(
                        f"type parameter '{param}' of {decl.name} shadows a type", decl.line)


def _find_top_level(text: str, start: int, target: str) -> int:
    """Index of the first ``target`` at bracket depth zero, or -1"""
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if depth == 0 and ch == target:
            return i
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            # '->' is an arrow, not a closing bracket
            if ch == '>' and i > 0 and text[i - 1] == '-':
                continue
            depth -= 1
            if depth < 0:
                return -1
    return -1


def _split_top_level(text: str, sep: str) -> list[str]:
    parts = []
    start = 0
    while True:
        idx = _find_top_level(text, start, sep)
        if idx < 0:
            parts.append(text[start:])
            return parts
        parts.append(text[start:idx])
        start = idx + 1


class _TypeParser:
    """Recursive descent over the tokens of one type expression"""

    def __init__(self, text: str, line: int):
        self.text = text
        self.line = line
        self.tokens = self._tokenize(text)
        self.pos = 0

    def _tokenize(self, text: str) -> list[tuple[str, str]]:
        tokens = []
        pos = 0
        text = text.rstrip()
        while pos < len(text):
            m = _TOKEN_RE.match(text, pos)
            if not m or m.end() == pos:
                self._fail(f"unexpected character '{text[pos:].strip()[:1]}'")
            kind = m.lastgroup
            value = m.group(kind)
            if kind == 'ident':
                value = re.sub(r'\s+', '', value)
            tokens.append((kind, value))
            pos = m.end()
        return tokens

    def _fail(self, why: str):
        raise DeclarationSyntaxError(f"invalid type '{self.text.strip()}': {why}", self.line)

    def _peek(self) -> Optional[tuple[str, str]]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> tuple[str, str]:
        tok = self._peek()
        if tok is None:
            self._fail("unexpected end")
        self.pos += 1
        return tok

    def _expect(self, value: str):
        tok = self._next()
        if tok[1] != value:
            self._fail(f"expected '{value}', found '{tok[1]}'")

    def parse(self) -> TypeExpr:
        expr = self._type()
        if self._peek() is not None:
            self._fail(f"unexpected '{self._peek()[1]}'")
        return expr

    def _type(self) -> TypeExpr:
        kind, value = self._next()

        if value == '&':
            lifetime = None
            if (tok := self._peek()) and tok[0] == 'lifetime':
                lifetime = self._next()[1]
            name = REF
            if (tok := self._peek()) and tok == ('ident', 'mut'):
                self._next()
                name = MUT_REF
            return TypeExpr(name, (self._type(),), lifetime)

        if value == '(':
            if self._peek() == ('punct', ')'):
                self._next()
                return TypeExpr(UNIT)
            elems = [self._type()]
            trailing_comma = False
            while self._peek() == ('punct', ','):
                self._next()
                trailing_comma = True
                if self._peek() == ('punct', ')'):
                    break
                elems.append(self._type())
                trailing_comma = False
            self._expect(')')
            if len(elems) == 1 and not trailing_comma:
                return elems[0]
            return TypeExpr(TUPLE, tuple(elems))

        if value == '[':
            elem = self._type()
            if self._peek() == ('punct', ';'):
                self._next()
                kind, size = self._next()
                if kind != 'number':
                    self._fail("array length must be a number")
                self._expect(']')
                return TypeExpr(ARRAY, (elem, TypeExpr(size)))
            self._expect(']')
            return TypeExpr(SLICE, (elem,))

        if kind == 'ident' and value in (IMPL, DYN):
            return TypeExpr(value, (self._type(),))

        if kind != 'ident':
            self._fail(f"unexpected '{value}'")

        args = []
        if self._peek() == ('punct', '<'):
            self._next()
            while True:
                if (tok := self._peek()) and tok[0] == 'lifetime':
                    self._next()
                else:
                    args.append(self._type())
                if self._peek() == ('punct', ','):
                    self._next()
                    if self._peek() == ('punct', '>'):
                        break
                    continue
                break
            self._expect('>')
        return TypeExpr(value, tuple(args))


def parse_type(text: str, line: int = 0) -> TypeExpr:
    """Parse a single type expression such as ``Result<Vec<User>, String>``"""
    if not text.strip():
        raise DeclarationSyntaxError("empty type", line)
    return _TypeParser(text, line).parse()
