# ==============================================
# Tests for ProjectAnalyzer
# ==============================================
#
# TEST CASES:
# -----------
# class TestAnalyzeProject  → scan rules, relative paths, dependency map
# class TestExtraction      → imports, exports, dependencies, chunk types
# class TestChunking        → function split, block split, size limits
# ==============================================

from gbts.ai.project_analyzer import ProjectAnalyzer


def make_function(name: str, body_lines: int = 6) -> str:
    body = "\n".join(f"    total = total + {i}; // accumulate step {i}" for i in range(body_lines))
    return f"function {name}(): number {{\n    let total = 0;\n{body}\n    return total;\n}}"


class TestAnalyzeProject:
    def test_scan_skips_declarations_and_node_modules(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)

        paths = [f.relative_path for f in context.files]
        # Top-down walk: root files first, then subdirectories
        assert paths == ["main.ts", "player.ts", "lib/math.ts"]

    def test_dependency_map_resolves_relative_imports(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)

        assert context.dependencies == {
            "lib/math.ts": [],
            "main.ts": ["player.ts", "lib/math.ts"],
            "player.ts": ["lib/math.ts"],
        }

    def test_export_and_import_maps(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)

        assert context.exports["player.ts"] == ["Player", "movePlayer"]
        assert [i.module for i in context.imports["main.ts"]] == ["./player", "./lib/math"]

    def test_single_file(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir / "player.ts")

        assert len(context.files) == 1
        assert context.files[0].relative_path == "player.ts"
        # ./lib/math is not part of a single-file analysis
        assert context.dependencies == {"player.ts": []}

    def test_index_file_resolution(self, tmp_path):
        (tmp_path / "sprites").mkdir()
        (tmp_path / "sprites" / "index.ts").write_text("export const SPRITE_COUNT = 4;\n")
        (tmp_path / "main.ts").write_text("import { SPRITE_COUNT } from './sprites';\n")

        context = ProjectAnalyzer().analyze_project(tmp_path)

        assert context.dependencies["main.ts"] == ["sprites/index.ts"]

    def test_small_files_are_not_chunked(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)
        assert all(f.chunks is None for f in context.files)


class TestExtraction:
    def test_import_forms(self):
        imports = ProjectAnalyzer.extract_imports(
            "import { a, b } from './mod';\n"
            "import * as gfx from '../gfx';\n"
            "import engine from 'engine';\n"
        )

        assert [(i.module, i.imports, i.is_relative) for i in imports] == [
            ("./mod", ["a", "b"], True),
            ("../gfx", ["gfx"], True),
            ("engine", ["engine"], False),
        ]

    def test_export_forms(self):
        exports = ProjectAnalyzer.extract_exports(
            "export function tick() {}\n"
            "export const SPEED = 2;\n"
            "export class Enemy {}\n"
            "const a = 1, b = 2;\n"
            "export { a, b };\n"
        )
        assert exports == ["tick", "SPEED", "Enemy", "a", "b"]

    def test_dependencies_are_unique_and_skip_builtins(self):
        deps = ProjectAnalyzer.extract_dependencies("movePlayer(p); movePlayer(q); Math.max(1, 2);")

        assert deps.count("movePlayer") == 1
        assert "Math" in deps
        assert deps.index("movePlayer") == 0

    def test_chunk_types(self):
        assert ProjectAnalyzer.detect_chunk_type("function go() {}") == "function"
        assert ProjectAnalyzer.detect_chunk_type("class Enemy {}") == "class"
        assert ProjectAnalyzer.detect_chunk_type("interface Point {}") == "interface"
        assert ProjectAnalyzer.detect_chunk_type("export const A = 1;") == "global"
        assert ProjectAnalyzer.detect_chunk_type("x = 1;") == "other"


class TestChunking:
    def test_large_file_split_by_functions(self, tmp_path):
        source = "\n\n".join(make_function(f"step{i}") for i in range(6))
        (tmp_path / "big.ts").write_text(source)

        analyzer = ProjectAnalyzer(max_file_size=500, chunk_size=2000)
        project_file = analyzer.analyze_project(tmp_path).files[0]

        chunks = project_file.chunks
        assert len(chunks) == 6
        assert [c.id for c in chunks] == [f"big.ts:{i}" for i in range(6)]
        assert all(c.type == "function" for c in chunks)
        assert chunks[0].start_line == 1
        assert chunks[1].start_line == chunks[0].end_line + 2
        assert "function step3" in chunks[3].content

    def test_small_functions_join_the_next_chunk(self):
        source = "function a() {\n  return 1;\n}\n" + make_function("big")
        chunks = ProjectAnalyzer(chunk_size=4000)._chunk_by_functions(source.split("\n"), "f.ts")

        assert len(chunks) == 1
        assert "function a()" in chunks[0].content
        assert "function big()" in chunks[0].content

    def test_chunks_never_exceed_chunk_size_by_much(self, tmp_path):
        source = "\n".join(f"let value{i} = {i}; // filler line for chunking" for i in range(200))
        analyzer = ProjectAnalyzer(max_file_size=100, chunk_size=600)

        chunks = analyzer.chunk_file(source, "flat.ts")

        assert len(chunks) > 1
        longest_line = max(len(line) for line in source.split("\n"))
        assert all(len(c.content) <= 600 + longest_line + 1 for c in chunks)
        joined = "\n".join(c.content for c in chunks)
        assert joined == source

    def test_block_boundaries(self):
        analyzer = ProjectAnalyzer()
        assert analyzer._is_natural_boundary("}", "function next() {")
        assert not analyzer._is_natural_boundary("}", "else {")
        assert not analyzer._is_natural_boundary("}", "  .then(run)")
        assert analyzer._is_natural_boundary("let a = 1;", "export function b() {")
        assert not analyzer._is_natural_boundary("let a = 1;", "let b = 2;")
