"""YAML loader for entity/method descriptors and their SQL templates.

Document layout::

    entities:
      User:
        fields:
          - {name: Id, type: int64, primaryKey: true}
          - {name: UserName, type: string}
    methods:
      GetById:
        parameters:
          - {name: id, type: int64}
        entity: User
        sql: "SELECT {{columns}} FROM {{table}} {{where:id}}"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from sqlforge.models.descriptors import EntityDescriptor, MethodDescriptor

logger = logging.getLogger("sqlforge.parser")

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

_MAX_DOCUMENT_SIZE = 2_000_000  # characters
_MAX_NODE_COUNT = 50_000
_MAX_DEPTH = 20

# YAML anchor definitions (&name) at line start or after whitespace or a
# sequence/mapping indicator; quoted strings are not excluded.
_ANCHOR_RE = re.compile(r"(?:^|[\s\-:])&(\w+)", re.MULTILINE)


class YAMLSafetyError(Exception):
    """Raised when YAML input violates safety constraints.

    Distinct from parse errors: these indicate potentially malicious input
    (billion-laughs anchors, excessive nesting, oversized documents).
    """


@dataclass(frozen=True)
class SourcePosition:
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class DescriptorLoadError(Exception):
    """A descriptor document is malformed; carries the YAML position when known."""

    def __init__(self, message: str, position: SourcePosition | None = None) -> None:
        self.position = position
        prefix = f"{position}: " if position else ""
        super().__init__(f"{prefix}{message}")


@dataclass
class TemplateDefinition:
    """A method's SQL template together with the descriptors it compiles against."""

    method: MethodDescriptor
    sql: str
    entity: str | None = None
    table: str | None = None
    dialect: str | None = None


@dataclass
class DescriptorSet:
    """Everything loaded from one or more descriptor documents."""

    entities: dict[str, EntityDescriptor] = field(default_factory=dict)
    methods: dict[str, MethodDescriptor] = field(default_factory=dict)
    templates: dict[str, TemplateDefinition] = field(default_factory=dict)

    def entity_for(self, template: TemplateDefinition) -> EntityDescriptor | None:
        if template.entity is None:
            return None
        try:
            return self.entities[template.entity]
        except KeyError:
            raise DescriptorLoadError(
                f"Method '{template.method.name}' references unknown entity '{template.entity}'"
            ) from None

    def merge(self, other: DescriptorSet) -> None:
        for kind, mine, theirs in (
            ("entity", self.entities, other.entities),
            ("method", self.methods, other.methods),
        ):
            for name in theirs:
                if name in mine:
                    raise DescriptorLoadError(f"Duplicate {kind} '{name}'")
            mine.update(theirs)
        self.templates.update(other.templates)


class DescriptorLoader:
    """YAML loader that builds descriptors and reports errors with source positions.

    Uses ruamel.yaml which preserves line/column info on every parsed node.
    """

    def __init__(self) -> None:
        self._yaml = YAML(typ="rt")

    # -- safety checks -------------------------------------------------------

    @staticmethod
    def _check_yaml_safety(content: str) -> None:
        """Pre-parse checks on raw YAML text: size and anchors/aliases."""
        if len(content) > _MAX_DOCUMENT_SIZE:
            raise YAMLSafetyError(
                f"YAML document exceeds maximum size "
                f"({len(content):,} chars > {_MAX_DOCUMENT_SIZE:,} limit)"
            )
        if _ANCHOR_RE.search(content):
            raise YAMLSafetyError("YAML anchors/aliases are not supported in descriptor files")

    @staticmethod
    def _check_structure(data: Any, limit: int = _MAX_NODE_COUNT) -> None:
        """Post-parse check: reject documents with too many nodes or too deep nesting."""
        count = 0
        stack: list[tuple[Any, int]] = [(data, 1)]
        while stack:
            node, depth = stack.pop()
            count += 1
            if count > limit:
                raise YAMLSafetyError(f"YAML document exceeds maximum node count ({limit:,})")
            if depth > _MAX_DEPTH:
                raise YAMLSafetyError(f"YAML document nests deeper than {_MAX_DEPTH} levels")
            if isinstance(node, dict):
                stack.extend((child, depth + 1) for child in node.values())
            elif isinstance(node, list):
                stack.extend((child, depth + 1) for child in node)

    # -- public loading API --------------------------------------------------

    def load(self, path: Path) -> DescriptorSet:
        """Load one descriptor file."""
        with path.open("r", encoding="utf-8") as handle:
            content = handle.read()
        return self.load_string(content, filename=str(path))

    def load_string(self, content: str, filename: str = "<string>") -> DescriptorSet:
        """Load descriptors from a YAML string."""
        self._check_yaml_safety(content)
        try:
            data = self._yaml.load(content)
        except YAMLError as exc:
            raise DescriptorLoadError(f"Invalid YAML in {filename}: {exc}") from exc
        if data is None:
            return DescriptorSet()
        if not isinstance(data, CommentedMap):
            raise DescriptorLoadError(f"{filename}: top level must be a mapping")
        self._check_structure(data)
        logger.debug("Loaded descriptor document %s", filename)
        return self._build(data, filename)

    def load_directory(self, root: Path) -> DescriptorSet:
        """Load and merge every ``*.yaml`` / ``*.yml`` file under ``root`` (sorted)."""
        merged = DescriptorSet()
        files = sorted([*root.rglob("*.yaml"), *root.rglob("*.yml")])
        for path in files:
            merged.merge(self.load(path))
        return merged

    # -- building ------------------------------------------------------------

    def _build(self, data: CommentedMap, filename: str) -> DescriptorSet:
        result = DescriptorSet()
        entities = data.get("entities") or {}
        for name, body in self._mapping_items(entities, filename):
            fields = body.get("fields") or []
            result.entities[name] = self._validated(
                EntityDescriptor,
                {"name": name, "fields": self._to_plain(fields)},
                self._position(entities, name, filename),
            )
        methods = data.get("methods") or {}
        for name, body in self._mapping_items(methods, filename):
            position = self._position(methods, name, filename)
            method = self._validated(
                MethodDescriptor,
                {"name": name, "parameters": self._to_plain(body.get("parameters") or [])},
                position,
            )
            result.methods[name] = method
            sql = body.get("sql")
            if sql is not None:
                if not isinstance(sql, str):
                    raise DescriptorLoadError(
                        f"'sql' of method '{name}' must be a string", position
                    )
                result.templates[name] = TemplateDefinition(
                    method=method,
                    sql=str(sql),
                    entity=body.get("entity"),
                    table=body.get("table"),
                    dialect=body.get("dialect"),
                )
        for template in result.templates.values():
            if template.entity is not None and template.entity not in result.entities:
                logger.debug("Entity '%s' not defined in %s", template.entity, filename)
        return result

    @staticmethod
    def _mapping_items(section: Any, filename: str) -> list[tuple[str, CommentedMap]]:
        if not isinstance(section, dict):
            raise DescriptorLoadError(f"{filename}: 'entities' and 'methods' must be mappings")
        items = []
        for name, body in section.items():
            if not isinstance(body, dict):
                raise DescriptorLoadError(f"{filename}: '{name}' must be a mapping")
            items.append((str(name), body))
        return items

    @staticmethod
    def _validated(
        model: type[Any], payload: dict[str, Any], position: SourcePosition | None
    ) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise DescriptorLoadError(
                f"Invalid {model.__name__} '{payload['name']}': {details}", position
            ) from exc

    @staticmethod
    def _position(section: Any, key: str, filename: str) -> SourcePosition | None:
        """Source position of ``key`` inside a ruamel.yaml mapping, if tracked."""
        try:
            line, col = section.lc.key(key)
        except (AttributeError, KeyError, TypeError):
            return None
        return SourcePosition(file=filename, line=line + 1, column=col + 1)

    def _to_plain(self, data: Any) -> Any:
        """Convert ruamel.yaml CommentedMap/Seq to plain Python dict/list."""
        if isinstance(data, (CommentedMap, dict)):
            return {str(k): self._to_plain(v) for k, v in data.items()}
        if isinstance(data, (CommentedSeq, list)):
            return [self._to_plain(item) for item in data]
        return data
