# ==============================================
# Tests for ProjectTranspiler
# ==============================================
#
# TEST CASES:
# -----------
# class TestOrdering          → dependencies first, cycles broken
# class TestTranspileProject  → per-chunk calls, assembly, metadata
# class TestWriteProjectFiles → modular and single-file output
# ==============================================

import json

import pytest

from gbts.ai.models import (
    ChunkResult,
    ChunkedTranspilationResult,
    GameBoyContext,
    ProjectContext,
    ProjectFile,
)
from gbts.ai.project_analyzer import ProjectAnalyzer
from gbts.ai.project_transpiler import ProjectTranspiler
from gbts.ai.transpiler import AITranspiler
from gbts.errors import ProviderError, TranspilationError

from conftest import FakeProvider


def big_function(name: str) -> str:
    body = "\n".join(f"    total = total + {i}; // running total {i}" for i in range(12))
    return f"function {name}(): number {{\n    let total = 0;\n{body}\n    return total;\n}}"


@pytest.fixture
def project_transpiler(config, ai_transpiler) -> ProjectTranspiler:
    return ProjectTranspiler(config, transpiler=ai_transpiler)


class TestOrdering:
    def test_dependencies_come_first(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)

        ordered = ProjectTranspiler.order_files_by_dependencies(context)

        assert [f.relative_path for f in ordered] == ["lib/math.ts", "player.ts", "main.ts"]

    def test_cycle_is_warned_and_broken(self, tmp_path, capsys):
        (tmp_path / "a.ts").write_text("import { b } from './b';\nexport const a = 1;\n")
        (tmp_path / "b.ts").write_text("import { a } from './a';\nexport const b = 2;\n")
        context = ProjectAnalyzer().analyze_project(tmp_path)

        ordered = ProjectTranspiler.order_files_by_dependencies(context)

        assert [f.relative_path for f in ordered] == ["b.ts", "a.ts"]
        assert "Circular dependency detected involving a.ts" in capsys.readouterr().err


class TestTranspileProject:
    def test_files_transpiled_in_dependency_order(self, project_transpiler, fake_provider, project_dir):
        result = project_transpiler.transpile_project(project_dir, GameBoyContext())

        assert fake_provider.calls == 3
        assert "Current File: lib/math.ts" in fake_provider.prompts[0]
        assert "Current File: player.ts" in fake_provider.prompts[1]
        assert "Current File: main.ts" in fake_provider.prompts[2]
        assert [f.file_path for f in result.files] == ["lib/math.ts", "player.ts", "main.ts"]
        assert [f.chunks[0].chunk_id for f in result.files] == ["lib/math.ts:0", "player.ts:0", "main.ts:0"]

    def test_chunk_context_reaches_the_prompt(self, project_transpiler, fake_provider, project_dir):
        project_transpiler.transpile_project(project_dir, GameBoyContext())

        main_prompt = fake_provider.prompts[2]
        assert "PROJECT CONTEXT:" in main_prompt
        assert "void movePlayer(player: Player, dx: number)" in main_prompt

        player_prompt = fake_provider.prompts[1]
        assert "- Work RAM variables: Player, movePlayer" in player_prompt

    def test_assembly(self, project_transpiler, project_dir):
        result = project_transpiler.transpile_project(project_dir, GameBoyContext())

        player = result.files[1]
        assert player.combined_c_code.startswith(
            "// Generated from player.ts\n#include <gb/gb.h>\n#include <stdio.h>\n\nvoid main() {"
        )

        project_code = result.project_c_code
        assert project_code.startswith("// GameBoy Project - Generated by GBTS AI\n#include <gb/gb.h>")
        assert project_code.count("#include <gb/gb.h>") == 1
        assert "// Forward declaration for Player" in project_code
        assert "// Forward declaration for clamp" in project_code
        assert project_code.index("// === lib/math.ts ===") < project_code.index("// === main.ts ===")

    def test_metadata(self, project_transpiler, project_dir):
        result = project_transpiler.transpile_project(project_dir, GameBoyContext())
        metadata = result.metadata

        assert metadata.total_files == 3
        assert metadata.total_chunks == 3
        assert metadata.total_transpiled_size == sum(len(f.combined_c_code) for f in result.files)
        assert metadata.estimated_rom_size >= metadata.total_transpiled_size
        assert metadata.dependencies == ["player.ts", "lib/math.ts"]
        assert metadata.optimizations == ["Multi-file project structure", "Intelligent code chunking"]
        assert metadata.warnings == []
        assert result.average_quality == pytest.approx(0.95)
        assert result.total_cost == 0.0

    def test_second_run_uses_cache(self, project_transpiler, fake_provider, project_dir):
        project_transpiler.transpile_project(project_dir, GameBoyContext())
        project_transpiler.transpile_project(project_dir, GameBoyContext())

        assert fake_provider.calls == 3

    def test_large_file_is_chunked(self, config, ai_transpiler, fake_provider, tmp_path):
        (tmp_path / "big.ts").write_text("\n\n".join(big_function(f"f{i}") for i in range(3)))
        config.project.max_file_size = 500
        config.project.chunk_size = 2000

        result = ProjectTranspiler(config, transpiler=ai_transpiler).transpile_project(
            tmp_path, GameBoyContext()
        )

        assert fake_provider.calls == 3
        assert [c.chunk_id for c in result.files[0].chunks] == ["big.ts:0", "big.ts:1", "big.ts:2"]
        assert "Code chunked into 3 manageable pieces" in result.metadata.optimizations
        assert "- Zero page variables: function_vars" in fake_provider.prompts[0]

    def test_no_source_files(self, project_transpiler, tmp_path):
        with pytest.raises(TranspilationError, match="No TypeScript files found"):
            project_transpiler.transpile_project(tmp_path, GameBoyContext())

    def test_chunk_failure_propagates(self, config, project_dir):
        failing = FakeProvider([ProviderError("service down")])
        transpiler = AITranspiler(config, providers={"claude": failing}, sleep=lambda seconds: None)

        with pytest.raises(ProviderError):
            ProjectTranspiler(config, transpiler=transpiler).transpile_project(
                project_dir, GameBoyContext(), max_retries=1
            )
        assert failing.calls == 1

    def test_oversized_output_warns(self):
        chunks = [ChunkResult(chunk_id="big.ts:0", c_code="x" * 30000, cost=0, duration=0, quality=1)]
        project_file = ProjectFile(path="big.ts", relative_path="big.ts", content="", size=0)
        combined = ProjectTranspiler.combine_chunks(chunks, project_file)

        file_result = ChunkedTranspilationResult(
            file_path="big.ts", chunks=chunks, combined_c_code=combined,
            total_cost=0, total_duration=0, average_quality=1,
        )
        metadata = ProjectTranspiler.generate_project_metadata(
            [file_result], ProjectContext(files=[project_file])
        )

        assert metadata.estimated_rom_size > 32768
        assert len(metadata.warnings) == 1
        assert "ROM size" in metadata.warnings[0]


class TestWriteProjectFiles:
    def test_modular_build(self, project_transpiler, project_dir, tmp_path):
        result = project_transpiler.transpile_project(project_dir, GameBoyContext())
        output = tmp_path / "out"

        written = project_transpiler.write_project_files(result, output)

        assert sorted(p.name for p in written) == ["main.c", "math.c", "player.c"]
        assert (output / "math.c").read_text() == result.files[0].combined_c_code
        info = json.loads((output / "project-info.json").read_text())
        assert info["total_files"] == 3
        assert not (output / "project.c").exists()

    def test_single_file_build(self, config, project_transpiler, project_dir, tmp_path):
        config.project.enable_modular_build = False
        result = project_transpiler.transpile_project(project_dir, GameBoyContext())
        output = tmp_path / "out"

        written = project_transpiler.write_project_files(result, output)

        assert [p.name for p in written] == ["project.c"]
        assert (output / "project.c").read_text() == result.project_c_code
        assert (output / "project-info.json").exists()

    def test_name_collision_is_warned(self, project_transpiler, tmp_path, capsys):
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        (tmp_path / "a" / "util.ts").write_text("export const A = 1;\n")
        (tmp_path / "b" / "util.ts").write_text("export const B = 2;\n")
        result = project_transpiler.transpile_project(tmp_path, GameBoyContext())

        project_transpiler.write_project_files(result, tmp_path / "out")

        assert "both write util.c" in capsys.readouterr().err
