"""Code generator for the client API.

Renders Jinja2 templates to produce Python code from a CodeGenResult.

Supports custom templates via the template_dir parameter:
    generator = CodeGenerator(result, schema, output_dir, template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates

Output layout:
    <output_dir>/__init__.py
    <output_dir>/enums.py
    <output_dir>/types.py
    <output_dir>/client/__init__.py
    <output_dir>/client/<operation type>_<operation name>.py
"""

import ast
import logging
import os
import re
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .arguments import OperationBinding
from .codegen import CodeGenResult, PolymorphismMarker
from .config import CodeGenConfig
from .ir import (
    EnumTypeDef,
    InputTypeDef,
    InterfaceTypeDef,
    ObjectTypeDef,
    ScalarTypeDef,
    SchemaModel,
    TypeRef,
    UnionTypeDef,
)
from .naming import safe_identifier, to_pascal_case, to_snake_case
from .projections import ProjectionTree
from .scalars import ANY_TYPE_NAME, ScalarRegistry

logger = logging.getLogger(__name__)

CLIENT_PACKAGE = "client"


def upper_case(name: str) -> str:
    """Convert to UPPER_CASE."""
    return to_snake_case(name).upper()


def safe_docstring(text: str) -> str:
    """Escape text for use in docstrings."""
    if not text:
        return ""
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    return text


def safe_comment(text: str) -> str:
    """Make text safe for a single-line Python comment."""
    if not text:
        return ""
    text = re.sub(r"\s+", " ", text)
    if len(text) > 120:
        text = text[:117] + "..."
    return text.strip()


def field_attribute(name: str) -> str:
    """Python attribute name of a schema field on a data model."""
    attribute = safe_identifier(to_snake_case(name))
    # pydantic treats leading underscores as private and reserves model_
    if attribute.startswith("_"):
        attribute = f"{attribute.lstrip('_') or 'field'}_"
    if attribute.startswith("model_"):
        attribute = f"{attribute}_"
    return attribute


class CodeGenerator:
    """Generates Python modules from a generation model.

    Supports custom templates via the template_dir parameter.
    Templates in template_dir take precedence over built-in templates.

    Available templates to override:
        - enums.py.j2: enum generation
        - types.py.j2: pydantic models and polymorphism markers
        - operation.py.j2: argument carrier plus projection classes
        - client_init.py.j2: client package exports

    Example:
        generator = CodeGenerator(
            result=CodeGen(schema, config).generate(),
            schema=schema,
            output_dir="./generated",
            template_dir="./my_templates",
        )
        written = generator.generate()
    """

    def __init__(
        self,
        result: CodeGenResult,
        schema: SchemaModel,
        output_dir: str,
        template_dir: str | None = None,
        config: CodeGenConfig | None = None,
    ):
        """Initialize the code generator.

        Args:
            result: The generation model of one run
            schema: The schema the model was generated from
            output_dir: Directory where generated code will be written
            template_dir: Optional directory with custom Jinja2 templates.
                          Templates here override the built-in templates.
            config: The run's configuration; supplies the scalar type mapping
                    and the package name
        """
        self.result = result
        self.schema = schema
        self.output_dir = output_dir
        self.template_dir = template_dir
        self.config = config or CodeGenConfig()
        self.scalars = ScalarRegistry.from_schema(schema, self.config.type_mapping)

        self._enum_names = {t.name for t in result.enum_types}
        self._model_names = {t.name for t in result.data_types}
        self._markers = {
            m.name: m for m in result.polymorphism_markers if self._marker_has_models(m)
        }

        # Build template loader - custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_clientgen", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        # Register custom filters
        self.env.filters["snake_case"] = to_snake_case
        self.env.filters["pascal_case"] = to_pascal_case
        self.env.filters["upper_case"] = upper_case
        self.env.filters["repr"] = repr
        self.env.filters["safe_docstring"] = safe_docstring
        self.env.filters["safe_comment"] = safe_comment
        self.env.filters["safe_param"] = safe_identifier
        self.env.filters["attribute"] = field_attribute
        self.env.filters["annotation"] = self.annotation
        self.env.filters["optional"] = self.optional_annotation

    def generate(self) -> list[str]:
        """Generate all code files and return their paths relative to output_dir."""
        os.makedirs(os.path.join(self.output_dir, CLIENT_PACKAGE), exist_ok=True)
        written = []

        # 1. Generate enums
        written.append(self._generate_file(
            "enums.py.j2", "enums.py",
            {"enums": self.result.enum_types},
        ))

        # 2. Generate data types and markers
        written.append(self._generate_file("types.py.j2", "types.py", self._types_context()))

        # 3. Generate one client module per operation
        modules = self._generate_operations()
        written.extend(path for path, _ in modules)

        # 4. Generate __init__.py files
        written.extend(self._generate_init_files(modules))

        logger.info("Wrote %d files to %s", len(written), self.output_dir)
        return written

    def annotation(self, type_ref: TypeRef) -> str:
        """Python annotation for a schema type reference."""
        if type_ref.is_list:
            inner = f"list[{self.annotation(type_ref.of_type)}]"
        else:
            inner = self._named_annotation(type_ref.name)
        if type_ref.non_null or inner == ANY_TYPE_NAME:
            return inner
        return f"Optional[{inner}]"

    def optional_annotation(self, type_ref: TypeRef) -> str:
        """Annotation for a parameter that defaults to None."""
        return self.annotation(replace(type_ref, non_null=False))

    def _named_annotation(self, type_name: str) -> str:
        type_def = self.schema.get_type(type_name)
        if isinstance(type_def, ScalarTypeDef):
            return self.scalars.python_type(type_name)
        if type_name in self._enum_names or type_name in self._model_names:
            return type_name
        if type_name in self._markers:
            return type_name
        if isinstance(type_def, (InterfaceTypeDef, UnionTypeDef)):
            members = [
                m.name for m in self.schema.possible_types(type_name)
                if m.name in self._model_names
            ]
            if len(members) == 1:
                return members[0]
        return ANY_TYPE_NAME

    def _marker_has_models(self, marker: PolymorphismMarker) -> bool:
        return all(member in self._model_names for member in marker.members)

    def _imports_for(self, type_refs: Iterable[TypeRef]) -> dict[str, Any]:
        """Classify the names a module's annotations refer to."""
        scalars, enums, models = set(), set(), set()
        for type_ref in type_refs:
            name = type_ref.base_name
            annotation = self._named_annotation(name)
            if isinstance(self.schema.get_type(name), ScalarTypeDef) or annotation == ANY_TYPE_NAME:
                scalars.add(name)
            elif annotation in self._enum_names:
                enums.add(annotation)
            else:
                models.add(annotation)
        return {
            "scalar_imports": sorted(self.scalars.get_all_imports(scalars)),
            "enum_imports": sorted(enums),
            "model_imports": sorted(models),
        }

    def _types_context(self) -> dict[str, Any]:
        type_refs = [
            f.type_ref
            for t in self.result.data_types
            for f in getattr(t, "fields", ())
            if not f.skip
        ]
        context = self._imports_for(type_refs)
        # Models live in this module; only enums and scalars are imported
        context["model_imports"] = []
        context["package_name"] = self.config.package_name
        context["objects"] = [t for t in self.result.data_types if isinstance(t, ObjectTypeDef)]
        context["inputs"] = [t for t in self.result.data_types if isinstance(t, InputTypeDef)]
        context["markers"] = self.result.polymorphism_markers
        context["complete_markers"] = set(self._markers)
        return context

    def _generate_operations(self) -> list[tuple[str, dict[str, Any]]]:
        """Render one module per operation; return (path, exports) pairs."""
        trees = {
            (tree.operation.operation_type, tree.operation.name): tree
            for tree in self.result.projections
        }
        modules = []
        for binding in self.result.operations:
            tree = trees.get((binding.operation.operation_type, binding.operation.name))
            module = f"{binding.operation.operation_type}_{binding.operation.full_name}"
            context = self._imports_for(_operation_type_refs(binding, tree))
            context.update({
                "package_name": self.config.package_name,
                "binding": binding,
                "operation": binding.operation,
                "tree": tree,
                "nodes": tree.nodes if tree else [],
            })
            path = self._generate_file(
                "operation.py.j2", f"{CLIENT_PACKAGE}/{module}.py", context
            )
            exports = [binding.name] + (tree.class_names if tree else [])
            modules.append((path, {"module": module, "exports": exports}))
        return modules

    def _generate_file(
        self, template_name: str, output_path: str, context: dict[str, Any]
    ) -> str:
        """Render a template and write to file."""
        template = self.env.get_template(template_name)
        content = template.render(context)

        # Validate Python syntax
        if output_path.endswith(".py"):
            try:
                ast.parse(content)
            except SyntaxError as e:
                raise ValueError(
                    f"Generated invalid Python for {output_path}: {e}\n"
                    f"Template: {template_name}"
                ) from e

        full_path = os.path.join(self.output_dir, output_path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "w") as f:
            f.write(content)
        logger.debug("Wrote %s", full_path)
        return output_path

    def _generate_init_files(self, modules: list[tuple[str, dict[str, Any]]]) -> list[str]:
        """Generate __init__.py files for packages."""
        # Same-named operations of different operation types resolve to the
        # same class names; only the first is re-exported
        exported: set[str] = set()
        packages = []
        for _, info in modules:
            names = [n for n in info["exports"] if n not in exported]
            if len(names) < len(info["exports"]):
                logger.warning(
                    "%s: names already exported by another module are not re-exported",
                    info["module"],
                )
            exported.update(names)
            packages.append({"module": info["module"], "exports": names})

        client_init = self._generate_file(
            "client_init.py.j2", f"{CLIENT_PACKAGE}/__init__.py", {"modules": packages}
        )

        # Root __init__.py
        with open(os.path.join(self.output_dir, "__init__.py"), "w") as f:
            f.write(f'"""Generated GraphQL client API for {self.config.package_name}.\n\n')
            f.write("Data types and enums:\n")
            f.write(f"    from {self.config.package_name}.types import SomeType\n")
            f.write(f"    from {self.config.package_name}.enums import SomeEnum\n\n")
            f.write("Query carriers and projections:\n")
            f.write(f"    from {self.config.package_name}.client import SomeGraphQLQuery\n")
            f.write('"""\n')
        return [client_init, "__init__.py"]


def _operation_type_refs(binding: OperationBinding, tree: ProjectionTree | None) -> list[TypeRef]:
    """Type references that appear in an operation module's signatures."""
    refs = [arg.type_ref for arg in binding.arguments]
    for node in tree.nodes if tree else ():
        for field in node.fields:
            refs.extend(arg.type_ref for arg in field.arguments)
        for link in node.links:
            refs.extend(arg.type_ref for arg in link.arguments)
        for child in node.children:
            refs.extend(arg.type_ref for arg in child.field_arguments)
    return refs
