"""
Prisma schema reader.

Parses the schema file written by `prisma db pull` (models, enums, field types,
field and block attributes) and converts it into TableMetadata. Only the subset
of the Prisma schema language that introspection emits is understood.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from models.table import TableMetadata, ColumnMetadata, ForeignKeyRef, Relation

PRISMA_TYPE_MAP = {
    "String": "varchar",
    "Int": "integer",
    "BigInt": "bigint",
    "Float": "real",
    "Decimal": "decimal",
    "Boolean": "boolean",
    "DateTime": "timestamp",
    "Json": "json",
    "Bytes": "blob",
}

_BLOCK_RE = re.compile(r"^(model|view|enum|type|datasource|generator)\s+(\w+)\s*\{\s*$")
_FIELD_RE = re.compile(
    r'^(?P<name>\w+)\s+(?P<type>Unsupported\("(?:[^"\\]|\\.)*"\)|\w+)'
    r"(?P<list>\[\])?(?P<optional>\?)?\s*(?P<rest>.*)$"
)
_ATTR_NAME_RE = re.compile(r"@@?([\w.]+)")
_FUNC_RE = re.compile(r"^(\w+)\((.*)\)$", re.S)
_LIST_ARG_RE = re.compile(r"\[([^\]]*)\]")


class PrismaSchemaError(ValueError):
    pass


@dataclass
class PrismaRelation:
    name: Optional[str] = None
    fields: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)


@dataclass
class PrismaField:
    name: str
    type: str
    is_list: bool = False
    is_optional: bool = False
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def db_name(self) -> str:
        mapped = self.attributes.get("map")
        return _first_string(mapped) if mapped else self.name

    @property
    def is_id(self) -> bool:
        return "id" in self.attributes

    @property
    def relation(self) -> PrismaRelation:
        return parse_relation_args(self.attributes.get("relation", ""))


@dataclass
class PrismaModel:
    name: str
    fields: list[PrismaField] = field(default_factory=list)
    block_attributes: dict[str, str] = field(default_factory=dict)

    @property
    def db_name(self) -> str:
        mapped = self.block_attributes.get("map")
        return _first_string(mapped) if mapped else self.name

    @property
    def compound_id(self) -> list[str]:
        args = self.block_attributes.get("id")
        if not args:
            return []
        m = _LIST_ARG_RE.search(args)
        return _split_names(m.group(1)) if m else []

    def get_field(self, name: str) -> Optional[PrismaField]:
        return next((f for f in self.fields if f.name == name), None)

    def field_db_name(self, name: str) -> str:
        f = self.get_field(name)
        return f.db_name if f else name


@dataclass
class PrismaSchema:
    models: dict[str, PrismaModel] = field(default_factory=dict)
    enums: dict[str, list[str]] = field(default_factory=dict)


# ── Parsing ──────────────────────────────────────────────────────────────────

def parse_schema(source: str) -> PrismaSchema:
    schema = PrismaSchema()
    block_kind: Optional[str] = None
    block_name = ""
    body: list[str] = []

    for lineno, raw in enumerate(source.splitlines(), start=1):
        line = _strip_comment(raw).strip()
        if not line:
            continue
        if block_kind is None:
            m = _BLOCK_RE.match(line)
            if not m:
                raise PrismaSchemaError(f"Unexpected content on line {lineno}: {line!r}")
            block_kind, block_name, body = m.group(1), m.group(2), []
            continue
        if line == "}":
            _close_block(schema, block_kind, block_name, body)
            block_kind = None
            continue
        body.append(line)

    if block_kind is not None:
        raise PrismaSchemaError(f"Unterminated {block_kind} block '{block_name}'")
    return schema


def _close_block(schema: PrismaSchema, kind: str, name: str, body: list[str]) -> None:
    if kind in ("model", "view"):
        schema.models[name] = _parse_model(name, body)
    elif kind == "enum":
        schema.enums[name] = [ln.split()[0] for ln in body if not ln.startswith("@@")]
    # datasource / generator / composite types carry no table metadata


def _parse_model(name: str, body: list[str]) -> PrismaModel:
    model = PrismaModel(name=name)
    for line in body:
        if line.startswith("@@"):
            model.block_attributes.update(parse_attributes(line))
            continue
        m = _FIELD_RE.match(line)
        if not m:
            raise PrismaSchemaError(f"Cannot parse field in model '{name}': {line!r}")
        model.fields.append(PrismaField(
            name=m.group("name"),
            type=m.group("type"),
            is_list=bool(m.group("list")),
            is_optional=bool(m.group("optional")),
            attributes=parse_attributes(m.group("rest")),
        ))
    return model


def parse_attributes(text: str) -> dict[str, str]:
    """Map attribute name → raw argument text, e.g. '@default(now())' → {'default': 'now()'}."""
    attrs: dict[str, str] = {}
    i = 0
    while i < len(text):
        if text[i] != "@":
            i += 1
            continue
        m = _ATTR_NAME_RE.match(text, i)
        if not m:
            i += 1
            continue
        name, i = m.group(1), m.end()
        args = ""
        if i < len(text) and text[i] == "(":
            end = _matching_paren(text, i)
            args = text[i + 1:end]
            i = end + 1
        attrs[name] = args
    return attrs


def parse_relation_args(args: str) -> PrismaRelation:
    rel = PrismaRelation()
    if not args:
        return rel
    for part in split_top_level(args):
        part = part.strip()
        if part.startswith('"'):
            rel.name = _first_string(part)
            continue
        key, _, value = part.partition(":")
        key, value = key.strip(), value.strip()
        if key == "name":
            rel.name = _first_string(value)
        elif key in ("fields", "references"):
            m = _LIST_ARG_RE.search(value)
            setattr(rel, key, _split_names(m.group(1)) if m else [])
    return rel


def split_top_level(args: str) -> list[str]:
    """Split on commas that are not nested in (), [] or a string literal."""
    parts, depth, start, in_str, i = [], 0, 0, False, 0
    while i < len(args):
        ch = args[i]
        if in_str:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(args[start:i])
            start = i + 1
        i += 1
    parts.append(args[start:])
    return [p for p in parts if p.strip()]


def _matching_paren(text: str, open_idx: int) -> int:
    depth, in_str, i = 0, False, open_idx
    while i < len(text):
        ch = text[i]
        if in_str:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise PrismaSchemaError(f"Unbalanced parentheses in {text!r}")


def _strip_comment(line: str) -> str:
    in_str, i = False, 0
    while i < len(line):
        ch = line[i]
        if in_str:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif line.startswith("//", i):
            return line[:i]
        i += 1
    return line


def _first_string(text: str) -> str:
    m = re.search(r'"((?:[^"\\]|\\.)*)"', text)
    if not m:
        raise PrismaSchemaError(f"Expected a string argument in {text!r}")
    return json.loads(f'"{m.group(1)}"')


def _split_names(text: str) -> list[str]:
    return [n.strip() for n in text.split(",") if n.strip()]


# ── Conversion ───────────────────────────────────────────────────────────────

def map_prisma_type(prisma_type: str) -> str:
    if prisma_type.startswith("Unsupported("):
        return "unsupported"
    return PRISMA_TYPE_MAP.get(prisma_type, prisma_type.lower())


def default_tag(args: str) -> Any:
    """Translate @default(...) arguments into a default-value tag or literal."""
    parts = split_top_level(args)
    if not parts:
        return None
    first = parts[0].strip()
    m = _FUNC_RE.match(first)
    if m:
        fn = m.group(1)
        if fn in ("autoincrement", "sequence"):
            return "autoincrement"
        if fn == "now":
            return "now()"
        if fn in ("uuid", "cuid"):
            return f"{fn}()"
        return None   # dbgenerated(...) and friends
    return _literal(first)


def _literal(text: str) -> Any:
    if text.startswith('"'):
        return _first_string(text)
    if text in ("true", "false"):
        return text == "true"
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text   # enum value or list literal


def to_table_metadata(schema: PrismaSchema) -> list[TableMetadata]:
    tables: list[TableMetadata] = []
    for model in schema.models.values():
        fk_map: dict[str, ForeignKeyRef] = {}
        relations: list[Relation] = []

        for f in model.fields:
            target = schema.models.get(f.type)
            if target is None:
                continue
            rel = f.relation
            if rel.fields:
                foreign = target.field_db_name(rel.references[0] if rel.references else "id")
                fk_map[rel.fields[0]] = ForeignKeyRef(table=target.db_name, column=foreign)
                relations.append(Relation(
                    type="hasMany" if f.is_list else "belongsTo",
                    table=target.db_name,
                    local_field=model.field_db_name(rel.fields[0]),
                    foreign_field=foreign,
                ))
            elif f.is_list:
                owner = _owning_side(target, model, rel.name)
                if owner is not None:
                    owner_rel = owner.relation
                    relations.append(Relation(
                        type="hasMany",
                        table=target.db_name,
                        local_field=model.field_db_name(owner_rel.references[0] if owner_rel.references else "id"),
                        foreign_field=target.field_db_name(owner_rel.fields[0]),
                    ))

        compound_id = set(model.compound_id)
        columns: list[ColumnMetadata] = []
        for f in model.fields:
            if f.type in schema.models:
                continue
            columns.append(ColumnMetadata(
                name=f.db_name,
                type=map_prisma_type(f.type),
                nullable=f.is_optional,
                primary_key=f.is_id or f.name in compound_id,
                default_value=default_tag(f.attributes["default"]) if "default" in f.attributes else None,
                foreign_key=fk_map.get(f.name),
            ))

        tables.append(TableMetadata(name=model.db_name, columns=columns, relations=relations))
    return tables


def _owning_side(target: PrismaModel, model: PrismaModel, relation_name: Optional[str]) -> Optional[PrismaField]:
    """Find the field on `target` that holds the FK for a back-relation declared on `model`."""
    for f in target.fields:
        if f.type != model.name:
            continue
        rel = f.relation
        if rel.fields and rel.name == relation_name:
            return f
    return None
