# ==============================================
# Tests for ProjectSchemaGenerator
# ==============================================

from gbts.ai.models import CodeChunk, ProjectFile
from gbts.ai.project_analyzer import ProjectAnalyzer
from gbts.ai.schema_generator import ProjectSchemaGenerator


def make_file(content: str, path: str = "game.ts") -> ProjectFile:
    return ProjectFile(path=path, relative_path=path, content=content, size=len(content))


class TestFileStructure:
    def test_interfaces_types_functions_variables(self):
        project_file = make_file(
            "interface Point { x: number; y: number }\n"
            "type Direction = 'up' | 'down';\n"
            "export function move(p: Point, d: Direction): Point {\n"
            "  return p;\n"
            "}\n"
            "function reset() {}\n"
            "const origin: Point = { x: 0, y: 0 };\n"
            "let lives = 3;\n"
        )

        schema = ProjectSchemaGenerator().analyze_file_structure(project_file)

        assert schema.types["Point"].type == "interface"
        assert schema.types["Point"].definition == "x: number; y: number"
        assert schema.types["Direction"].definition == "'up' | 'down'"
        assert schema.functions["move"].is_exported is True
        assert schema.functions["move"].parameters == "p: Point, d: Direction"
        assert schema.functions["move"].return_type == "Point"
        assert schema.functions["reset"].is_exported is False
        assert schema.functions["reset"].return_type == "void"
        assert schema.variables == {"origin": "Point", "lives": "any"}

    def test_class_methods(self):
        project_file = make_file(
            "class Enemy {\n"
            "  constructor(x: number) {}\n"
            "  public update(dt: number): void {\n"
            "    if (dt > 0) {}\n"
            "  }\n"
            "}\n"
        )

        functions = ProjectSchemaGenerator().analyze_file_structure(project_file).functions

        assert "update" in functions
        assert functions["update"].parameters == "dt: number"
        assert "constructor" not in functions
        assert "if" not in functions


class TestProjectSchema:
    def test_global_maps_are_keyed_by_file(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)
        schema = ProjectSchemaGenerator().generate_schema(context)

        assert set(schema.files) == {"main.ts", "player.ts", "lib/math.ts"}
        assert "player.ts:Player" in schema.global_types
        assert "player.ts:movePlayer" in schema.global_functions
        assert "lib/math.ts:clamp" in schema.global_functions
        assert schema.global_variables["main.ts:player"] == "Player"
        assert schema.dependencies == context.dependencies

    def test_project_summary(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)
        summary = ProjectSchemaGenerator.generate_project_summary(context)

        assert summary.startswith("GameBoy TypeScript Project:\n- 3 TypeScript files (")
        assert "- Entry point: main.ts" in summary
        assert "- Key modules: main, player, math" in summary
        assert summary.endswith("- Target: GameBoy ROM using GBDK framework")

    def test_chunk_context_lists_used_dependency_declarations(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)
        generator = ProjectSchemaGenerator()
        schema = generator.generate_schema(context)
        main = context.find_file("main.ts")
        chunk = CodeChunk(id="main.ts:0", content=main.content, type="function", start_line=1, end_line=7)

        summary = generator.build_chunk_context_summary(chunk, main, schema)

        assert "Project Context:" in summary
        assert "// From player.ts\ninterface Player {" in summary
        assert "void movePlayer(player: Player, dx: number)" in summary
        assert "number clamp(value: number, min: number, max: number)" in summary
        assert "Current File: main.ts" in summary
        assert "Chunk: main.ts:0" in summary

    def test_chunk_context_skips_unused_declarations(self, project_dir):
        context = ProjectAnalyzer().analyze_project(project_dir)
        generator = ProjectSchemaGenerator()
        schema = generator.generate_schema(context)
        main = context.find_file("main.ts")
        chunk = CodeChunk(id="main.ts:0", content="let unrelated = 1;", type="other", start_line=1, end_line=1)

        summary = generator.build_chunk_context_summary(chunk, main, schema)

        assert "interface Player" not in summary
        assert "movePlayer" not in summary
