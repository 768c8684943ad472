# ==============================================
# Tests for PromptEngine
# ==============================================

from gbts.ai.models import GameBoyContext, MemoryLayout, PerformanceMetrics, TranspilationExample
from gbts.ai.prompt_engine import PromptEngine


JS = "let score = 0;\nfunction addPoint() { score++; }"


def make_example(index: int) -> TranspilationExample:
    return TranspilationExample(
        id=str(index),
        js_code=f"let value{index} = {index};",
        c_code=f"unsigned char value{index} = {index};",
        context=GameBoyContext(),
        quality=0.9,
        performance=PerformanceMetrics(),
        timestamp=0.0,
        provider="fake",
    )


class TestBuildPrompt:
    def test_placeholders_are_filled(self):
        prompt = PromptEngine().build_prompt(JS, GameBoyContext())

        assert "{GAMEBOY_CONSTRAINTS}" not in prompt
        assert "{CONTEXT_INFO}" not in prompt
        assert "{GBDK_FUNCTIONS}" not in prompt
        assert "{EXAMPLES}" not in prompt
        assert "{OUTPUT_FORMAT}" not in prompt

    def test_code_and_constraints_included(self):
        context = GameBoyContext(target="cgb", available_ram=16, current_bank=2, optimize_for="speed")
        prompt = PromptEngine().build_prompt(JS, context)

        assert f"```javascript\n{JS}\n```" in prompt
        assert "TARGET: CGB (GameBoy Color, color support)" in prompt
        assert "AVAILABLE RAM: 16KB" in prompt
        assert "CURRENT ROM BANK: 2" in prompt
        assert "PRIORITY: Maximize execution speed" in prompt
        assert prompt.endswith("no explanations or markdown formatting:")

    def test_memory_layout_and_project_context(self):
        context = GameBoyContext(
            memory_layout=MemoryLayout(zero_page=["function_vars"], work_ram=["Player"], ram_bank=1),
            project_context="\nProject Context:\nGameBoy TypeScript Project\n",
        )
        prompt = PromptEngine().build_prompt(JS, context)

        assert "- Zero page variables: function_vars" in prompt
        assert "- Work RAM variables: Player" in prompt
        assert "- RAM bank: 1" in prompt
        assert "PROJECT CONTEXT:\nProject Context:\nGameBoy TypeScript Project" in prompt

    def test_gbdk_reference_follows_features(self):
        engine = PromptEngine()

        full = engine.build_prompt(JS, GameBoyContext())
        minimal = engine.build_prompt(JS, GameBoyContext(features=["sound"]))

        assert "move_sprite" in full and "set_bkg_tiles" in full
        assert "move_sprite" not in minimal
        assert "set_bkg_tiles" not in minimal
        assert "joypad" in minimal

    def test_only_three_examples_used(self):
        examples = [make_example(i) for i in range(5)]
        prompt = PromptEngine().build_prompt(JS, GameBoyContext(), examples)

        assert "EXAMPLES OF GOOD CONVERSIONS" in prompt
        assert "Example 3:" in prompt
        assert "Example 4:" not in prompt
        assert "value3" not in prompt


class TestSpecializedPrompt:
    def test_known_code_type_adds_focus(self):
        prompt = PromptEngine().create_specialized_prompt(JS, "game-loop")
        assert prompt.endswith("use wait_vbl_done() for timing.")
        assert "SPECIAL FOCUS:" in prompt

    def test_unknown_code_type_is_plain_prompt(self):
        engine = PromptEngine()
        assert engine.create_specialized_prompt(JS, "physics") == engine.build_prompt(JS, GameBoyContext())
