# ==============================================
# Command: the TypeScript → ROM build chain
# ==============================================
#
# PURPOSE:
#   Runs the steps that turn a TypeScript source into a GameBoy ROM.
#   Every step but the AI transpilation is an external process.
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                      Command chains                      │
#   │                                                          │
#   │  all          transpile → make_gbdk → compile → link     │
#   │               → make_rom                                 │
#   │  transpile    transpile                                  │
#   │  compile      make_gbdk → compile → link → make_rom      │
#   │  build        make_rom                                   │
#   │                                                          │
#   │  artifacts:   game.ts → game.c → game.rel → game.ihx     │
#   │               → game.gb                                  │
#   └──────────────────────────────────────────────────────────┘
#
# CLASS: Command
# --------------
#   Constructor:
#   ------------
#   - __init__(config, ai_transpiler=None, runner=subprocess.run)
#       runner is called as runner(cmd, cwd=..., capture_output=True,
#       text=True) and must return an object with returncode, stdout
#       and stderr.
#
#   Step Methods:
#   -------------
#   - transpile(path)   .ts → .c (AI or ts2c; directories use the
#                       project transpiler)
#   - make_gbdk()       `make` inside the GBDK directory
#   - compile(path)     .c → .rel
#   - link(path)        .rel → .ihx
#   - make_rom(path)    .ihx → .gb
#
# NOTES:
# ------
#   Tools run with cwd= set to the source directory. The working
#   directory of this process is never changed.
#
# ==============================================

import os
import platform
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from gbts.config import AppConfig
from gbts.errors import CompilationError, SourceNotFoundError, TranspilationError
from gbts.logger import Logger


COMPILE_SCRIPT = "gbdk-n-compile"
LINK_SCRIPT = "gbdk-n-link"
MAKE_ROM_SCRIPT = "gbdk-n-make-rom"


def script_suffix() -> str:
    if os.name == "nt" or platform.system() == "Windows":
        return ".bat"
    return ".sh"


class Command:
    """The build steps, and the chains that combine them."""

    def __init__(self, config: AppConfig, ai_transpiler=None, runner: Callable = subprocess.run):
        self.config = config
        self._ai_transpiler = ai_transpiler
        self._runner = runner

    @property
    def gbdk_path(self) -> Path:
        return Path(self.config.toolchain.gbdk_path)

    def _script(self, name: str) -> str:
        return str(self.gbdk_path / "bin" / f"{name}{script_suffix()}")

    def _get_ai_transpiler(self):
        # Created on first use so that ts2c and compile-only runs need no API key
        if self._ai_transpiler is None:
            from gbts.ai.transpiler import AITranspiler
            self._ai_transpiler = AITranspiler(self.config)
        return self._ai_transpiler

    # ------------------------------------------
    # Chains
    # ------------------------------------------

    def all(self, path) -> None:
        self.transpile(path)
        self.compile_all(path)

    def transpile_only(self, path) -> None:
        self.transpile(path)

    def compile_all(self, path) -> None:
        self.make_gbdk()
        self.compile(path)
        self.link(path)
        self.make_rom(path)

    def build(self, path) -> None:
        self.make_rom(path)

    # ------------------------------------------
    # Transpilation
    # ------------------------------------------

    def transpile(self, path) -> None:
        """
        Transpile a source file (or a project directory) to C.

        Raises:
            SourceNotFoundError: path does not exist
            TranspilationError: the transpiler failed
        """
        source = Path(path)
        if not source.exists():
            raise SourceNotFoundError(str(path))

        if source.is_dir():
            self._transpile_project(source)
        elif self.config.toolchain.transpiler == "ts2c":
            self._transpile_with_ts2c(source)
        else:
            self._transpile_with_ai(source)

    def _transpile_with_ts2c(self, source: Path) -> None:
        Logger.start_loading("Transpiling TypeScript → C with ts2c")
        try:
            self._run([self.config.toolchain.ts2c_command, source.name], cwd=source.parent)
        except CompilationError as e:
            raise TranspilationError(f"ts2c failed: {e}", cause=e) from e
        Logger.success("Transpiled TypeScript → C")

    def _transpile_with_ai(self, source: Path) -> None:
        Logger.start_loading("🤖 Starting AI-powered transpilation TypeScript → GameBoy C")
        transpiler = self._get_ai_transpiler()

        js_code = source.read_text(encoding="utf-8")
        result = transpiler.transpile(js_code, self.config.gameboy_context())

        output = source.with_suffix(".c")
        output.write_text(result.c_code, encoding="utf-8")

        Logger.success("🎉 AI transpilation completed!")
        Logger.info(f"Provider: {result.provider}{' (cached)' if result.from_cache else ''}")
        Logger.info(f"Cost: ${result.cost:.4f} | Quality: {result.quality * 100:.1f}%")
        Logger.info(f"Estimated ROM: ~{result.metadata.estimated_rom_size} bytes")
        for warning in result.metadata.warnings:
            Logger.warn(warning)
        Logger.info(f"Written {output}")

    def _transpile_project(self, directory: Path) -> None:
        if self.config.toolchain.transpiler != "ai":
            raise TranspilationError("Project directories can only be transpiled with the AI transpiler")

        from gbts.ai.project_transpiler import ProjectTranspiler

        project_transpiler = ProjectTranspiler(self.config, transpiler=self._get_ai_transpiler())
        result = project_transpiler.transpile_project(directory, self.config.gameboy_context())
        project_transpiler.write_project_files(result, directory)

        for warning in result.metadata.warnings:
            Logger.warn(warning)

    # ------------------------------------------
    # GBDK steps
    # ------------------------------------------

    def make_gbdk(self) -> None:
        if not self.gbdk_path.is_dir():
            raise CompilationError('GBDK not installed, please run "gbts-install" first')

        Logger.start_loading("Building GBDK")
        self._run(["make"], cwd=self.gbdk_path)
        Logger.success("GBDK ready")

    def compile(self, path) -> None:
        """Compile each C file to a .rel object."""
        directory, c_files = self._artifacts(path, ".c")
        if not c_files:
            raise CompilationError(f"No C files to compile for {path}")

        Logger.start_loading("Compiling C → object files")
        for c_file in c_files:
            self._run([self._script(COMPILE_SCRIPT), c_file.name], cwd=directory)
        Logger.success(f"Compiled {len(c_files)} file(s)")

    def link(self, path) -> None:
        directory, rel_files = self._artifacts(path, ".rel")
        if not rel_files:
            raise CompilationError(f"No object files to link for {path}")

        ihx_name = f"{self._output_stem(path)}.ihx"
        Logger.start_loading("Linking object files")
        self._run(
            [self._script(LINK_SCRIPT)] + [rel.name for rel in rel_files] + ["-o", ihx_name],
            cwd=directory,
        )
        Logger.success(f"Linked {ihx_name}")

    def make_rom(self, path) -> None:
        source = Path(path)
        directory = source if source.is_dir() else source.parent
        stem = self._output_stem(path)

        if not (directory / f"{stem}.ihx").exists():
            raise CompilationError(f"File {directory / (stem + '.ihx')} does not exist")

        Logger.start_loading("Making ROM")
        self._run([self._script(MAKE_ROM_SCRIPT), f"{stem}.ihx", f"{stem}.gb"], cwd=directory)
        Logger.success(f"ROM {stem}.gb")

    # ------------------------------------------
    # Helpers
    # ------------------------------------------

    @staticmethod
    def _output_stem(path) -> str:
        source = Path(path)
        return source.resolve().name if source.is_dir() else source.stem

    @staticmethod
    def _artifacts(path, suffix: str):
        """
        (directory, files) for one step.

        A file path maps to its own artifact (game.ts → game.c);
        a directory maps to every artifact it holds.
        """
        source = Path(path)
        if source.is_dir():
            return source, sorted(source.glob(f"*{suffix}"))

        artifact = source.with_suffix(suffix)
        return source.parent, [artifact] if artifact.exists() else []

    def _run(self, cmd: List[str], cwd: Optional[Path] = None):
        try:
            result = self._runner(cmd, cwd=str(cwd) if cwd else None, capture_output=True, text=True)
        except OSError as e:
            raise CompilationError(f"Could not run {cmd[0]}: {e}", cause=e) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise CompilationError(
                f"{Path(cmd[0]).name} exited with code {result.returncode}" + (f"\n{stderr}" if stderr else ""),
                stderr=stderr,
            )
        return result
