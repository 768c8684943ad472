# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - clean_env       → removes GBTS_* and provider key variables
# - config          → AppConfig with a temporary GBDK directory
# - fake_provider   → FakeProvider returning GOOD_C
# - ai_transpiler   → AITranspiler wired to fake_provider, no sleeping
# - fake_runner     → FakeRunner that fakes the GBDK tools
# - project_dir     → small multi-file TypeScript project
#
# NOTES:
# ------
# - No test reaches the network or runs a real toolchain
# - Use tmp_path for temporary files
# ==============================================

from pathlib import Path
from types import SimpleNamespace

import pytest

from gbts.ai.providers.base import AIProvider
from gbts.ai.transpiler import AITranspiler
from gbts.config import AppConfig


GOOD_C = """#include <gb/gb.h>
#include <stdio.h>

void main() {
    unsigned char counter = 0;
    printf("Hello GameBoy");
    wait_vbl_done();
}"""

ENV_VARS = (
    "GBTS_AI_PROVIDER",
    "CLAUDE_API_KEY",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "GBTS_DAILY_BUDGET",
    "GBTS_MAX_COST",
    "GBTS_DISABLE_CACHE",
    "GBTS_LOCAL_LLM_ENDPOINT",
    "GBTS_GBDK_PATH",
    "GBTS_TRANSPILER",
)


class FakeProvider(AIProvider):
    """Returns canned responses in order; the last one repeats."""

    name = "fake"
    cost = 0.0

    def __init__(self, responses=None, cost_per_call=0.0):
        super().__init__(timeout=1.0)
        self.responses = list(responses or [GOOD_C])
        self.cost_per_call = cost_per_call
        self.prompts = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    def transpile(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses[min(len(self.prompts), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response

    def estimate_cost(self, prompt: str, response: str) -> float:
        return self.cost_per_call


class FakeRunner:
    """
    Stands in for subprocess.run.

    Records every command and creates the file each GBDK tool would
    produce, so the next step finds its input.
    """

    def __init__(self, fail_on=None, stderr="boom"):
        self.commands = []
        self.fail_on = fail_on
        self.stderr = stderr

    def __call__(self, cmd, cwd=None, capture_output=True, text=True):
        self.commands.append((list(cmd), cwd))
        tool = Path(cmd[0]).name

        if self.fail_on and self.fail_on in tool:
            return SimpleNamespace(returncode=2, stdout="", stderr=self.stderr)

        directory = Path(cwd) if cwd else Path.cwd()
        if tool.startswith("gbdk-n-compile"):
            (directory / Path(cmd[1]).with_suffix(".rel").name).write_text("rel")
        elif tool.startswith("gbdk-n-link"):
            (directory / cmd[cmd.index("-o") + 1]).write_text("ihx")
        elif tool.startswith("gbdk-n-make-rom"):
            (directory / cmd[2]).write_text("rom")
        elif tool == "ts2c":
            (directory / Path(cmd[1]).with_suffix(".c").name).write_text(GOOD_C)

        return SimpleNamespace(returncode=0, stdout="", stderr="")

    @property
    def tools(self):
        return [Path(cmd[0]).name for cmd, _ in self.commands]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    app_config = AppConfig()
    gbdk = tmp_path / "bin" / "gbdk-n-master"
    (gbdk / "bin").mkdir(parents=True)
    app_config.toolchain.gbdk_path = str(gbdk)
    return app_config


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def ai_transpiler(config, fake_provider) -> AITranspiler:
    config.providers.primary = "fake"
    return AITranspiler(config, providers={"fake": fake_provider}, sleep=lambda seconds: None)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project_dir(tmp_path) -> Path:
    root = tmp_path / "game"
    (root / "lib").mkdir(parents=True)
    (root / "node_modules" / "dep").mkdir(parents=True)

    (root / "main.ts").write_text(
        "import { Player, movePlayer } from './player';\n"
        "import { clamp } from './lib/math';\n"
        "\n"
        "function main(): void {\n"
        "    const player: Player = { x: 0, y: 0 };\n"
        "    movePlayer(player, clamp(3, 0, 10));\n"
        "}\n"
    )
    (root / "player.ts").write_text(
        "import { clamp } from './lib/math';\n"
        "\n"
        "export interface Player {\n"
        "    x: number;\n"
        "    y: number;\n"
        "}\n"
        "\n"
        "export function movePlayer(player: Player, dx: number): void {\n"
        "    player.x = clamp(player.x + dx, 0, 160);\n"
        "}\n"
    )
    (root / "lib" / "math.ts").write_text(
        "export function clamp(value: number, min: number, max: number): number {\n"
        "    return Math.max(min, Math.min(max, value));\n"
        "}\n"
    )
    (root / "lib" / "types.d.ts").write_text("declare const VERSION: string;\n")
    (root / "node_modules" / "dep" / "index.ts").write_text("export const ignored = 1;\n")
    return root
