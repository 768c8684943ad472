# ==============================================
# ProjectAnalyzer
# ==============================================
#
# PURPOSE:
#   First pass over a TypeScript project. Reads every source file,
#   records what it imports and exports, splits oversized files into
#   chunks, and builds the file-level dependency map used to order
#   transpilation.
#
# CLASS: ProjectAnalyzer
# ----------------------
#   Stateless apart from the two size limits.
#
#   Constructor:
#   ------------
#   - __init__(max_file_size: int = 8000, chunk_size: int = 4000)
#       Files larger than max_file_size are chunked; no chunk grows
#       past chunk_size characters.
#
#   Methods:
#   --------
#   - analyze_project(input_path) -> ProjectContext
#       Accepts a single file or a directory.
#
#   - chunk_file(content, relative_path) -> list[CodeChunk]
#       Strategy 1: split on function/class bodies (brace counting).
#       Strategy 2: split on natural block boundaries.
#
#   - extract_imports(content) -> list[FileImport]
#   - extract_exports(content) -> list[str]
#   - extract_dependencies(content) -> list[str]
#
# NOTES:
# ------
#   All parsing here is regex based and approximate. It only needs to
#   be good enough to give the model useful context.
#
# ==============================================

import os
import re
from pathlib import Path
from typing import Dict, List

from .models import CodeChunk, FileImport, ProjectContext, ProjectFile


SKIPPED_DIRECTORIES = {"node_modules", "dist", ".git", "__tests__"}
SOURCE_EXTENSIONS = (".ts", ".js")
DECLARATION_SUFFIX = ".d.ts"
MIN_CHUNK_SIZE = 100

_BLOCK_START = re.compile(
    r"(?:function|class|interface|type|const\s+\w+\s*=\s*(?:async\s+)?\(|export\s+(?:function|class|interface|type))"
)
_TOP_LEVEL_DECLARATION = re.compile(r"^(export\s+)?(function|class|interface|type)")
_IMPORT = re.compile(
    r"""import\s+(?:{([^}]+)}|\*\s+as\s+(\w+)|(\w+))\s+from\s+['"]([^'"]+)['"]"""
)
_NAMED_EXPORT = re.compile(r"export\s+(?:function|class|interface|type|const|let|var)\s+(\w+)")
_EXPORT_LIST = re.compile(r"export\s+{([^}]+)}")
_CALL = re.compile(r"\b([a-zA-Z_$][a-zA-Z0-9_$]*)\s*\(")
_IDENTIFIER = re.compile(r"\b([a-zA-Z_$][a-zA-Z0-9_$]*)\b")

IGNORED_CALLS = {"console", "Math", "parseInt", "parseFloat"}
IGNORED_IDENTIFIERS = {"const", "let", "var", "function", "class"}


def is_source_file(name: str) -> bool:
    return name.endswith(SOURCE_EXTENSIONS) and not name.endswith(DECLARATION_SUFFIX)


class ProjectAnalyzer:
    """Scans a project and splits it into analyzable units."""

    def __init__(self, max_file_size: int = 8000, chunk_size: int = 4000):
        self.max_file_size = max_file_size
        self.chunk_size = chunk_size

    def analyze_project(self, input_path) -> ProjectContext:
        """
        Analyze a file or a directory of TypeScript/JavaScript sources.

        Args:
            input_path: Path to a source file or a project directory

        Returns:
            ProjectContext with files, dependency, export and import maps
        """
        root = Path(input_path).resolve()
        if root.is_dir():
            files = self._scan_directory(root)
        else:
            files = [self.analyze_file(root, root.parent)]

        return ProjectContext(
            files=files,
            dependencies=self._build_dependency_map(files),
            exports={f.relative_path: f.exports for f in files},
            imports={f.relative_path: f.imports for f in files},
        )

    def _scan_directory(self, root: Path) -> List[ProjectFile]:
        files = []
        for current, directories, names in os.walk(root):
            # Sorted, in place, so the walk order is stable
            directories[:] = sorted(d for d in directories if d not in SKIPPED_DIRECTORIES)
            for name in sorted(names):
                if is_source_file(name):
                    files.append(self.analyze_file(Path(current) / name, root))
        return files

    def analyze_file(self, file_path: Path, base_path: Path) -> ProjectFile:
        content = Path(file_path).read_text(encoding="utf-8")
        relative_path = Path(file_path).relative_to(base_path).as_posix()

        project_file = ProjectFile(
            path=str(file_path),
            relative_path=relative_path,
            content=content,
            imports=self.extract_imports(content),
            exports=self.extract_exports(content),
            size=len(content),
        )

        if project_file.size > self.max_file_size:
            project_file.chunks = self.chunk_file(content, relative_path)

        return project_file

    # ------------------------------------------
    # Chunking
    # ------------------------------------------

    def chunk_file(self, content: str, relative_path: str) -> List[CodeChunk]:
        lines = content.split("\n")

        function_chunks = self._chunk_by_functions(lines, relative_path)
        if len(function_chunks) > 1:
            return function_chunks

        return self._chunk_by_blocks(lines, relative_path)

    def _make_chunk(self, chunks: List[CodeChunk], relative_path: str, lines: List[str],
                    start: int, end: int, chunk_type: str) -> None:
        content = "\n".join(lines)
        chunks.append(CodeChunk(
            id=f"{relative_path}:{len(chunks)}",
            content=content,
            type=chunk_type,
            start_line=start + 1,
            end_line=end + 1,
            dependencies=self.extract_dependencies(content),
        ))

    def _chunk_by_functions(self, lines: List[str], relative_path: str) -> List[CodeChunk]:
        chunks: List[CodeChunk] = []
        current: List[str] = []
        current_start = 0
        brace_count = 0
        in_function = False

        for i, line in enumerate(lines):
            if not line:
                continue

            if not current:
                current_start = i
            current.append(line)

            if not in_function and _BLOCK_START.search(line):
                in_function = True

            brace_count += line.count("{") - line.count("}")

            # End of a function/class body
            if in_function and brace_count <= 0 and "}" in line:
                in_function = False
                brace_count = 0
                chunk_content = "\n".join(current)
                # Small bodies stay in the buffer and join the next chunk
                if len(chunk_content) > MIN_CHUNK_SIZE:
                    self._make_chunk(chunks, relative_path, current, current_start, i,
                                     self.detect_chunk_type(chunk_content))
                    current = []
                    continue

            # Force split if the chunk gets too large
            if len("\n".join(current)) > self.chunk_size:
                self._make_chunk(chunks, relative_path, current, current_start, i, "other")
                current = []
                in_function = False
                brace_count = 0

        if current:
            self._make_chunk(chunks, relative_path, current, current_start, len(lines) - 1, "other")

        return chunks

    def _chunk_by_blocks(self, lines: List[str], relative_path: str) -> List[CodeChunk]:
        chunks: List[CodeChunk] = []
        current: List[str] = []
        current_start = 0

        for i, line in enumerate(lines):
            if line:
                if not current:
                    current_start = i
                current.append(line)

            next_line = lines[i + 1] if i + 1 < len(lines) else ""
            too_big = len("\n".join(current)) >= self.chunk_size
            if current and (too_big or (next_line and self._is_natural_boundary(line, next_line))):
                self._make_chunk(chunks, relative_path, current, current_start, i, "other")
                current = []

        if current:
            self._make_chunk(chunks, relative_path, current, current_start, len(lines) - 1, "other")

        return chunks

    @staticmethod
    def _is_natural_boundary(current_line: str, next_line: str) -> bool:
        current_stripped = current_line.strip()
        next_stripped = next_line.strip()

        # After a closing brace, unless the statement continues
        if (current_stripped.endswith("}")
                and not next_stripped.startswith(".")
                and not next_stripped.startswith("else")):
            return True

        # Before a new top-level declaration
        if _TOP_LEVEL_DECLARATION.match(next_line):
            return True

        # After a blank line
        return current_stripped == "" and next_stripped != ""

    @staticmethod
    def detect_chunk_type(content: str) -> str:
        if "function " in content or "=> " in content:
            return "function"
        if "class " in content:
            return "class"
        if "interface " in content or "type " in content:
            return "interface"
        if "export " in content and "{" not in content:
            return "global"
        return "other"

    # ------------------------------------------
    # Extraction
    # ------------------------------------------

    @staticmethod
    def extract_dependencies(content: str) -> List[str]:
        """Called functions and referenced identifiers, first occurrence order."""
        deps = [name for name in _CALL.findall(content) if name not in IGNORED_CALLS]
        deps += [
            name for name in _IDENTIFIER.findall(content)
            if len(name) > 1 and name not in IGNORED_IDENTIFIERS
        ]
        return list(dict.fromkeys(deps))

    @staticmethod
    def extract_imports(content: str) -> List[FileImport]:
        imports = []
        for match in _IMPORT.finditer(content):
            named, namespace, default, module = match.groups()
            if named:
                names = [name.strip() for name in named.split(",") if name.strip()]
            else:
                names = [namespace or default]

            imports.append(FileImport(
                module=module,
                imports=names,
                is_relative=module.startswith("./") or module.startswith("../"),
            ))
        return imports

    @staticmethod
    def extract_exports(content: str) -> List[str]:
        exports = _NAMED_EXPORT.findall(content)
        for export_list in _EXPORT_LIST.findall(content):
            exports.extend(item.strip() for item in export_list.split(",") if item.strip())
        return exports

    # ------------------------------------------
    # Maps
    # ------------------------------------------

    @staticmethod
    def _build_dependency_map(files: List[ProjectFile]) -> Dict[str, List[str]]:
        by_path = {os.path.normpath(f.path): f.relative_path for f in files}
        dependencies: Dict[str, List[str]] = {}

        for project_file in files:
            resolved_deps = []
            directory = os.path.dirname(project_file.path)
            for file_import in project_file.imports:
                if not file_import.is_relative:
                    continue

                base = os.path.normpath(os.path.join(directory, file_import.module))
                candidates = [base] + [base + ext for ext in SOURCE_EXTENSIONS]
                candidates += [os.path.join(base, "index" + ext) for ext in SOURCE_EXTENSIONS]
                for candidate in candidates:
                    relative_dep = by_path.get(candidate)
                    if relative_dep and relative_dep not in resolved_deps:
                        resolved_deps.append(relative_dep)
                        break

            dependencies[project_file.relative_path] = resolved_deps

        return dependencies
