# ==============================================
# ProjectTranspiler: project-wide orchestrator
# ==============================================
#
# PURPOSE:
#   Ties the AI stages together to transpile a whole project.
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                   ProjectTranspiler                      │
#   │                                                          │
#   │  PASS 1: ANALYSIS                                        │
#   │    ProjectAnalyzer → files, chunks, dependency map       │
#   │    ProjectSchemaGenerator → cross-file schema            │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  PASS 2: TRANSPILATION (dependencies first)              │
#   │    for each file, for each chunk:                        │
#   │      chunk context = schema summary + memory layout      │
#   │      AITranspiler.transpile(chunk, context)              │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  ASSEMBLY                                                │
#   │    chunks → per-file C, files → project C, metadata      │
#   └──────────────────────────────────────────────────────────┘
#
# CLASS: ProjectTranspiler
# ------------------------
#   Constructor:
#   ------------
#   - __init__(config: AppConfig, transpiler: AITranspiler | None = None)
#       The AITranspiler is created on first use when not given.
#
#   Public Methods:
#   ---------------
#   - transpile_project(input_path, context, use_cache=True,
#                       max_retries=3) -> ProjectTranspilationResult
#   - write_project_files(result, output_dir) -> list[Path]
#
# ==============================================

import json
import math
import re
import time
from dataclasses import replace
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Set

from gbts.config import AppConfig
from gbts.errors import TranspilationError
from gbts.logger import Logger

from .models import (
    ChunkResult,
    ChunkedTranspilationResult,
    CodeChunk,
    GameBoyContext,
    MemoryLayout,
    ProjectContext,
    ProjectFile,
    ProjectMetadata,
    ProjectSchema,
    ProjectTranspilationResult,
)
from .project_analyzer import ProjectAnalyzer
from .schema_generator import ProjectSchemaGenerator
from .transpiler import AITranspiler, GAMEBOY_RAM_BYTES, GAMEBOY_ROM_BYTES


FILE_HEADER = "// Generated from {path}\n#include <gb/gb.h>\n#include <stdio.h>\n\n"
PROJECT_HEADER = "// GameBoy Project - Generated by GBTS AI\n#include <gb/gb.h>\n#include <stdio.h>\n\n"
PROJECT_FILE_NAME = "project.c"
METADATA_FILE_NAME = "project-info.json"

_GB_INCLUDE = re.compile(r"#include\s+<gb/gb\.h>\s*\n?")
_STDIO_INCLUDE = re.compile(r"#include\s+<stdio\.h>\s*\n?")


def strip_standard_includes(c_code: str) -> str:
    return _STDIO_INCLUDE.sub("", _GB_INCLUDE.sub("", c_code))


class ProjectTranspiler:
    """Transpiles a multi-file project with global context."""

    def __init__(self, config: AppConfig, transpiler: Optional[AITranspiler] = None):
        self.config = config
        self.analyzer = ProjectAnalyzer(
            max_file_size=config.project.max_file_size,
            chunk_size=config.project.chunk_size,
        )
        self.schema_generator = ProjectSchemaGenerator()
        self._transpiler = transpiler

    @property
    def transpiler(self) -> AITranspiler:
        if self._transpiler is None:
            self._transpiler = AITranspiler(self.config)
        return self._transpiler

    def transpile_project(
        self,
        input_path,
        context: GameBoyContext,
        use_cache: bool = True,
        max_retries: int = 3,
    ) -> ProjectTranspilationResult:
        """
        Transpile every source file of a project.

        Args:
            input_path: Project directory (or a single file)
            context: Base GameBoy context, enriched per chunk
            use_cache: Forwarded to AITranspiler.transpile()
            max_retries: Forwarded to AITranspiler.transpile()

        Returns:
            ProjectTranspilationResult

        Raises:
            TranspilationError: no source files, or a chunk failed
        """
        # PASS 1: analysis and global schema
        Logger.start_loading("Analyzing project structure")
        project_context = self.analyzer.analyze_project(input_path)
        if not project_context.files:
            Logger.stop_loading()
            raise TranspilationError(f"No TypeScript files found in {input_path}")
        Logger.success(f"Found {len(project_context.files)} TypeScript files")

        Logger.start_loading("Building global project schema")
        schema = self.schema_generator.generate_schema(project_context)
        Logger.success(
            f"Global schema created with {len(schema.global_types)} types, "
            f"{len(schema.global_functions)} functions"
        )

        total_chunks = sum(len(f.chunks) if f.chunks else 1 for f in project_context.files)
        if total_chunks > len(project_context.files):
            Logger.info(
                f"Files chunked: {total_chunks} total chunks "
                f"(max {self.config.project.chunk_size} chars per chunk)"
            )

        # PASS 2: transpilation with global context
        Logger.start_loading("Starting AI-powered project transpilation with global context")
        start_time = time.time()
        file_results: List[ChunkedTranspilationResult] = []
        total_cost = 0.0
        total_quality = 0.0

        ordered_files = self.order_files_by_dependencies(project_context)
        for index, project_file in enumerate(ordered_files, start=1):
            Logger.info(f"Processing {project_file.relative_path} ({index}/{len(ordered_files)})")

            file_result = self._transpile_file(project_file, schema, context, use_cache, max_retries)
            file_results.append(file_result)
            total_cost += file_result.total_cost
            total_quality += file_result.average_quality

            Logger.success(f"{project_file.relative_path} → {PurePosixPath(project_file.relative_path).stem}.c")

        duration = time.time() - start_time
        average_quality = total_quality / len(file_results)
        metadata = self.generate_project_metadata(file_results, project_context)

        Logger.success("Project transpilation completed!")
        Logger.info(
            f"Files: {len(file_results)} | Chunks: {metadata.total_chunks} | "
            f"Cost: ${total_cost:.4f} | Quality: {average_quality * 100:.1f}%"
        )

        return ProjectTranspilationResult(
            files=file_results,
            project_c_code=self.combine_project_c_code(file_results, project_context),
            total_cost=total_cost,
            total_duration=duration,
            average_quality=average_quality,
            metadata=metadata,
        )

    def _transpile_file(
        self,
        project_file: ProjectFile,
        schema: ProjectSchema,
        context: GameBoyContext,
        use_cache: bool,
        max_retries: int,
    ) -> ChunkedTranspilationResult:
        chunks = project_file.chunks or [CodeChunk(
            id=f"{project_file.relative_path}:0",
            content=project_file.content,
            type="other",
            start_line=1,
            end_line=len(project_file.content.split("\n")),
        )]

        chunk_results: List[ChunkResult] = []
        for chunk in chunks:
            chunk_context = self.build_chunk_context(chunk, project_file, schema, context)
            try:
                result = self.transpiler.transpile(
                    chunk.content, chunk_context, use_cache=use_cache, max_retries=max_retries
                )
            except Exception:
                Logger.error(f"Failed to transpile chunk {chunk.id}")
                raise

            chunk_results.append(ChunkResult(
                chunk_id=chunk.id,
                c_code=result.c_code,
                cost=result.cost,
                duration=result.duration,
                quality=result.quality,
            ))
            if len(chunks) > 1:
                Logger.info(f"  Chunk {chunk.id} completed ({len(result.c_code)} chars)")

        return ChunkedTranspilationResult(
            file_path=project_file.relative_path,
            chunks=chunk_results,
            combined_c_code=self.combine_chunks(chunk_results, project_file),
            total_cost=sum(c.cost for c in chunk_results),
            total_duration=sum(c.duration for c in chunk_results),
            average_quality=sum(c.quality for c in chunk_results) / len(chunk_results),
        )

    def build_chunk_context(
        self,
        chunk: CodeChunk,
        project_file: ProjectFile,
        schema: ProjectSchema,
        context: GameBoyContext,
    ) -> GameBoyContext:
        """Base context plus the project schema summary and a per-chunk memory layout."""
        base_layout = context.memory_layout or MemoryLayout()
        return replace(
            context,
            project_context=self.schema_generator.build_chunk_context_summary(chunk, project_file, schema),
            memory_layout=MemoryLayout(
                zero_page=[f"{chunk.type}_vars"] if chunk.type == "function" else [],
                work_ram=list(project_file.exports),
                rom_bank=context.current_bank,
                ram_bank=base_layout.ram_bank,
            ),
        )

    # ------------------------------------------
    # Ordering
    # ------------------------------------------

    @staticmethod
    def order_files_by_dependencies(project_context: ProjectContext) -> List[ProjectFile]:
        """Depth-first: every file comes after the files it imports. Cycles are broken."""
        ordered: List[ProjectFile] = []
        visited: Set[str] = set()
        visiting: Set[str] = set()

        def visit(relative_path: str) -> None:
            if relative_path in visited:
                return
            if relative_path in visiting:
                Logger.warn(f"Circular dependency detected involving {relative_path}")
                return

            visiting.add(relative_path)
            for dep in project_context.dependencies.get(relative_path, []):
                visit(dep)
            visiting.discard(relative_path)
            visited.add(relative_path)

            project_file = project_context.find_file(relative_path)
            if project_file is not None:
                ordered.append(project_file)

        for project_file in project_context.files:
            visit(project_file.relative_path)

        return ordered

    # ------------------------------------------
    # Assembly
    # ------------------------------------------

    @staticmethod
    def combine_chunks(chunks: List[ChunkResult], project_file: ProjectFile) -> str:
        header = FILE_HEADER.format(path=project_file.relative_path)
        body = "\n\n".join(strip_standard_includes(chunk.c_code).strip() for chunk in chunks)
        return header + body

    def combine_project_c_code(
        self, file_results: List[ChunkedTranspilationResult], project_context: ProjectContext
    ) -> str:
        declarations = self.generate_forward_declarations(project_context)
        all_code = "\n\n".join(
            f"// === {result.file_path} ===\n{result.combined_c_code}" for result in file_results
        )
        return f"{PROJECT_HEADER}{declarations}\n{strip_standard_includes(all_code)}"

    @staticmethod
    def generate_forward_declarations(project_context: ProjectContext) -> str:
        declarations = [
            f"// Forward declaration for {name}"
            for project_file in project_context.files
            for name in project_file.exports
            if name and name != "default"
        ]
        return "\n".join(declarations) + "\n" if declarations else ""

    @staticmethod
    def generate_project_metadata(
        file_results: List[ChunkedTranspilationResult], project_context: ProjectContext
    ) -> ProjectMetadata:
        total_files = len(file_results)
        total_chunks = sum(len(result.chunks) for result in file_results)
        total_transpiled_size = sum(len(result.combined_c_code) for result in file_results)

        # C code + compiled overhead
        estimated_rom_size = math.ceil(total_transpiled_size * 1.2)
        estimated_ram_usage = math.ceil(total_transpiled_size * 0.1)

        dependencies = list(dict.fromkeys(
            dep for deps in project_context.dependencies.values() for dep in deps
        ))

        optimizations = ["Multi-file project structure", "Intelligent code chunking"]
        if total_chunks > total_files:
            optimizations.append(f"Code chunked into {total_chunks} manageable pieces")

        warnings = []
        if estimated_rom_size > GAMEBOY_ROM_BYTES:
            warnings.append("Estimated ROM size exceeds GameBoy limit (32KB)")
        if estimated_ram_usage > GAMEBOY_RAM_BYTES:
            warnings.append("Estimated RAM usage exceeds GameBoy limit (8KB)")

        return ProjectMetadata(
            total_files=total_files,
            total_chunks=total_chunks,
            total_original_size=sum(f.size for f in project_context.files),
            total_transpiled_size=total_transpiled_size,
            estimated_rom_size=estimated_rom_size,
            estimated_ram_usage=estimated_ram_usage,
            dependencies=dependencies,
            optimizations=optimizations,
            warnings=warnings,
        )

    def write_project_files(self, result: ProjectTranspilationResult, output_dir) -> List[Path]:
        """
        Write the C output and project-info.json.

        Modular build: one <stem>.c per source file.
        Otherwise: a single project.c.

        Returns:
            Paths of the C files written
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []

        if self.config.project.enable_modular_build:
            seen: Dict[str, str] = {}
            for file_result in result.files:
                name = f"{PurePosixPath(file_result.file_path).stem}.c"
                if name in seen:
                    Logger.warn(f"{file_result.file_path} and {seen[name]} both write {name}")
                seen[name] = file_result.file_path

                c_path = output_path / name
                c_path.write_text(file_result.combined_c_code, encoding="utf-8")
                written.append(c_path)
                Logger.info(f"Written {c_path}")
        else:
            c_path = output_path / PROJECT_FILE_NAME
            c_path.write_text(result.project_c_code, encoding="utf-8")
            written.append(c_path)
            Logger.info(f"Written {c_path}")

        metadata_path = output_path / METADATA_FILE_NAME
        with open(metadata_path, "w", encoding="utf-8") as f:
            json.dump(result.metadata.to_dict(), f, indent=2)

        return written
