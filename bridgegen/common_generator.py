"""Common Generator - generates the shared aggregate types module"""

from .classifier import TypeClassifier
from .type_mapper import TypeMapper
from .types import ParsedIDL, FunctionSignature, Record, Enum, OptionalType, aggregate_names


class CommonGenerator:
    """
    Generates the types module imported by both host and client modules.

    Only aggregates reachable from the emitted signatures are written, in
    dependency order so that every annotation refers to an earlier class.
    """

    def __init__(self, idl: ParsedIDL, signatures: list[FunctionSignature], namespace: str):
        self.idl = idl
        self.signatures = signatures
        self.namespace = namespace
        self._classifier = TypeClassifier(idl)

    def used_types(self) -> list[str]:
        """Aggregate names needed by the signatures, dependencies first"""
        ordered = []

        def visit(name: str):
            if name in ordered:
                return
            decl = self.idl.find_type(name)
            for member in self._members(decl):
                for dep in aggregate_names(self._classifier.classify_member(decl, member)):
                    visit(dep)
            ordered.append(name)

        for sig in self.signatures:
            for p in sig.parameters:
                for name in aggregate_names(p.descriptor):
                    visit(name)
            for name in aggregate_names(sig.return_type):
                visit(name)
        return ordered

    def generate(self) -> str:
        lines = [
            '"""',
            f"AUTO-GENERATED shared types for {self.namespace}",
            "DO NOT EDIT - Generated from bridge declarations",
            '"""',
            "",
            "from enum import Enum",
            "from typing import Annotated, Generic, List, Literal, Optional, TypeVar, Union",
            "",
            "from pydantic import BaseModel, Field",
            "",
        ]

        used = self.used_types()
        type_params = []
        for name in used:
            for param in self.idl.find_type(name).params:
                if param not in type_params:
                    type_params.append(param)
        for param in type_params:
            lines.append(f'{param} = TypeVar("{param}")')
        if type_params:
            lines.append("")

        for name in used:
            decl = self.idl.find_type(name)
            if isinstance(decl, Record):
                lines.extend(self._generate_record(decl))
            elif decl.is_unit_only:
                lines.extend(self._generate_unit_enum(decl))
            else:
                lines.extend(self._generate_tagged_union(decl))

        return "\n".join(lines)

    def _members(self, decl) -> list:
        if isinstance(decl, Record):
            return decl.members
        return [m for v in decl.variants for m in v.members]

    def _field_lines(self, decl, members: list) -> list[str]:
        lines = []
        for m in members:
            desc = self._classifier.classify_member(decl, m)
            annotation = TypeMapper.to_client(desc)
            # A missing optional field decodes as absent
            default = " = None" if isinstance(desc, OptionalType) else ""
            lines.append(f"    {m.name}: {annotation}{default}")
        return lines

    def _generate_record(self, record: Record) -> list[str]:
        lines = [
            "",
            f"class {record.name}({self._bases(record)}):",
            f'    """Record {record.name}"""',
        ]
        lines.extend(self._field_lines(record, record.members))
        if record.display and record.display_template is not None:
            lines.extend([
                "",
                "    def __str__(self) -> str:",
                f"        return {record.display_template!r}.format_map(dict(self))",
            ])
        lines.append("")
        return lines

    def _generate_unit_enum(self, enum: Enum) -> list[str]:
        lines = [
            "",
            f"class {enum.name}(str, Enum):",
            f'    """Enum {enum.name}"""',
        ]
        for v in enum.variants:
            lines.append(f'    {v.name} = "{v.name}"')
        if enum.display:
            lines.extend([
                "",
                "    def __str__(self) -> str:",
                "        return self.value",
            ])
        lines.append("")
        return lines

    def _generate_tagged_union(self, enum: Enum) -> list[str]:
        lines = []
        variant_classes = []
        tag = TypeClassifier.VARIANT_TAG
        for v in enum.variants:
            cls_name = f"{enum.name}{v.name}"
            variant_classes.append(cls_name)
            lines.extend([
                "",
                f"class {cls_name}(BaseModel):",
                f'    """Variant {enum.name}::{v.name}"""',
                f'    {tag}: Literal["{v.name}"] = "{v.name}"',
            ])
            lines.extend(self._field_lines(enum, v.members))
            if enum.display:
                rendering = v.name
                if v.members:
                    rendering += "(" + ", ".join(f"{m.name}={{{m.name}}}" for m in v.members) + ")"
                lines.extend([
                    "",
                    "    def __str__(self) -> str:",
                    f"        return {rendering!r}.format_map(dict(self))",
                ])
            lines.append("")

        lines.append("")
        if len(variant_classes) == 1:
            lines.append(f"{enum.name} = {variant_classes[0]}")
        else:
            union = ", ".join(variant_classes)
            lines.append(f'{enum.name} = Annotated[Union[{union}], Field(discriminator="{tag}")]')
        lines.append("")
        return lines

    def _bases(self, decl) -> str:
        if decl.params:
            return f"BaseModel, Generic[{', '.join(decl.params)}]"
        return "BaseModel"
