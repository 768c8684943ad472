# ==============================================
# ProjectSchemaGenerator
# ==============================================
#
# PURPOSE:
#   Build a cross-file schema (types, functions, variables) of the
#   whole project so that each chunk can be transpiled knowing what
#   its dependencies declare.
#
#   Global maps are keyed "<relative path>:<name>" so that two files
#   declaring the same name do not overwrite each other.
#
# ==============================================

import re
from pathlib import PurePosixPath

from .models import (
    CodeChunk,
    FileSchema,
    FunctionSignature,
    ProjectContext,
    ProjectFile,
    ProjectSchema,
    TypeDefinition,
)


_INTERFACE = re.compile(r"interface\s+(\w+)\s*{([^{}]*(?:{[^{}]*}[^{}]*)*)}")
_TYPE_ALIAS = re.compile(r"type\s+(\w+)\s*=\s*([^;\n]+)")
_FUNCTION = re.compile(r"(?:export\s+)?(?:async\s+)?function\s+(\w+)\s*\(([^)]*)\)\s*:?\s*([^{;\n]*)")
_METHOD = re.compile(r"(?:public|private|protected)?\s*(?:async\s+)?(\w+)\s*\(([^)]*)\)\s*:?\s*([^{;\n]*)")
_VARIABLE = re.compile(r"(?:export\s+)?(?:const|let|var)\s+(\w+)\s*:?\s*([^=;\n]*)")

NOT_METHODS = {"constructor", "if", "for", "while", "switch", "function", "catch", "return"}


class ProjectSchemaGenerator:
    """Collects declarations across files into a ProjectSchema."""

    def generate_schema(self, project_context: ProjectContext) -> ProjectSchema:
        """
        Generate a schema of the entire project.

        Args:
            project_context: Output of ProjectAnalyzer.analyze_project()

        Returns:
            ProjectSchema with per-file and global declaration maps
        """
        schema = ProjectSchema(
            dependencies=project_context.dependencies,
            summary=self.generate_project_summary(project_context),
        )

        for project_file in project_context.files:
            file_schema = self.analyze_file_structure(project_file)
            schema.files[project_file.relative_path] = file_schema

            prefix = project_file.relative_path
            for name, definition in file_schema.types.items():
                schema.global_types[f"{prefix}:{name}"] = definition
            for name, signature in file_schema.functions.items():
                schema.global_functions[f"{prefix}:{name}"] = signature
            for name, var_type in file_schema.variables.items():
                schema.global_variables[f"{prefix}:{name}"] = var_type

        return schema

    def analyze_file_structure(self, project_file: ProjectFile) -> FileSchema:
        content = project_file.content
        path = project_file.relative_path
        file_schema = FileSchema(imports=project_file.imports, exports=project_file.exports)

        for match in _INTERFACE.finditer(content):
            name, body = match.groups()
            if body.strip():
                file_schema.types[name] = TypeDefinition(
                    name=name, type="interface", definition=body.strip(), file_path=path
                )

        for match in _TYPE_ALIAS.finditer(content):
            name, definition = match.groups()
            file_schema.types[name] = TypeDefinition(
                name=name, type="type", definition=definition.strip(), file_path=path
            )

        for match in _FUNCTION.finditer(content):
            name, params, return_type = match.groups()
            file_schema.functions[name] = FunctionSignature(
                name=name,
                parameters=params.strip(),
                return_type=return_type.strip() or "void",
                file_path=path,
                is_exported="export" in match.group(0),
            )

        # Methods; plain functions were already recorded with their export flag
        for match in _METHOD.finditer(content):
            name, params, return_type = match.groups()
            if name in NOT_METHODS or name in file_schema.functions:
                continue
            file_schema.functions[name] = FunctionSignature(
                name=name,
                parameters=params.strip(),
                return_type=return_type.strip() or "void",
                file_path=path,
                is_exported=False,
            )

        for match in _VARIABLE.finditer(content):
            name, var_type = match.groups()
            file_schema.variables[name] = var_type.strip() or "any"

        return file_schema

    @staticmethod
    def generate_project_summary(project_context: ProjectContext) -> str:
        files = project_context.files
        total_lines = sum(len(f.content.split("\n")) for f in files)

        entry_point = next(
            (
                f.relative_path for f in files
                if "main" in f.relative_path or "index" in f.relative_path or "main(" in f.content
            ),
            "unknown",
        )
        key_modules = ", ".join(PurePosixPath(f.relative_path).stem for f in files[:3])

        return (
            "GameBoy TypeScript Project:\n"
            f"- {len(files)} TypeScript files ({total_lines} total lines)\n"
            f"- Entry point: {entry_point}\n"
            f"- Key modules: {key_modules}\n"
            "- Target: GameBoy ROM using GBDK framework"
        )

    def build_chunk_context_summary(
        self, chunk: CodeChunk, project_file: ProjectFile, schema: ProjectSchema
    ) -> str:
        """
        Context for one chunk: the project summary plus the declarations
        from the file's dependencies that the chunk actually mentions.
        """
        relevant_types = []
        relevant_functions = []

        for dep_path in schema.dependencies.get(project_file.relative_path, []):
            dep_schema = schema.files.get(dep_path)
            if dep_schema is None:
                continue

            for name, definition in dep_schema.types.items():
                if name in chunk.content:
                    if definition.type == "interface":
                        relevant_types.append(f"// From {dep_path}\ninterface {name} {{ {definition.definition} }}")
                    else:
                        relevant_types.append(f"// From {dep_path}\ntype {name} = {definition.definition}")

            for name, signature in dep_schema.functions.items():
                if name in chunk.content:
                    relevant_functions.append(
                        f"// From {dep_path}\n{signature.return_type} {name}({signature.parameters})"
                    )

        types_text = "\n\n".join(relevant_types)
        functions_text = "\n".join(relevant_functions)
        return (
            "\nProject Context:\n"
            f"{schema.summary}\n\n"
            "Available Types:\n"
            f"{types_text}\n\n"
            "Available Functions:\n"
            f"{functions_text}\n\n"
            f"Current File: {project_file.relative_path}\n"
            f"Chunk: {chunk.id}\n"
        )
