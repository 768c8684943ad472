# ==============================================
# PromptEngine
# ==============================================
#
# PURPOSE:
#   Turn a piece of TypeScript/JavaScript plus a GameBoyContext into
#   the prompt sent to a provider. The prompt is one template with
#   placeholders filled from the context:
#
#     {GAMEBOY_CONSTRAINTS}  target, RAM, bank, focus, features
#     {CONTEXT_INFO}         memory layout, focus hints, project context
#     {GBDK_FUNCTIONS}       GBDK reference, filtered by features
#     {EXAMPLES}             up to 3 past conversions
#     {OUTPUT_FORMAT}        "return only C" rules
#
# ==============================================

from typing import Sequence

from .models import GameBoyContext, TranspilationExample


HARDWARE_CONSTRAINTS = """GAMEBOY HARDWARE CONSTRAINTS:
- CPU: 8-bit Sharp LR35902 (Z80-like) at 4.194 MHz
- RAM: 8KB work RAM (0xC000-0xDFFF)
- Video RAM: 8KB (0x8000-0x9FFF)
- High RAM: 127 bytes (0xFF80-0xFFFE) - fastest access
- ROM: 32KB per bank (banking available for larger programs)
- No floating point unit - use fixed point arithmetic
- Limited stack space - avoid deep recursion"""

OUTPUT_FORMAT = """OUTPUT FORMAT:
- Return ONLY valid C code
- Include necessary #include statements
- Use GBDK function calls for hardware access
- Add brief comments for complex operations
- Ensure code compiles with GBDK
- No markdown formatting or explanations"""

BASE_TEMPLATE = """You are an expert GameBoy C programmer and transpiler. Your job is to convert JavaScript/TypeScript code into highly optimized C code that runs efficiently on the Nintendo GameBoy.

{GAMEBOY_CONSTRAINTS}

{CONTEXT_INFO}

{GBDK_FUNCTIONS}

CONVERSION RULES:
1. Prefer unsigned char over int when possible (0-255 range)
2. Use signed char for small negative values (-128 to 127)
3. Avoid floating point operations (GameBoy has no FPU)
4. Minimize RAM usage - GameBoy only has 8KB work RAM
5. Use GBDK functions for hardware access
6. Convert console.log() to printf() with proper formatting
7. Convert arrays to C arrays with fixed sizes
8. Convert objects to structs when beneficial
9. Replace modern JS features with C equivalents
10. Optimize for size first, then speed

MEMORY OPTIMIZATION:
- Variables used frequently: consider zero page (0xFF80-0xFFFE)
- Constants: place in ROM with __code qualifier
- Large data: consider ROM banking if needed
- Temporary variables: use stack/registers when possible

{EXAMPLES}

{OUTPUT_FORMAT}"""

GBDK_REFERENCE = [
    "// DISPLAY FUNCTIONS",
    "void set_bkg_tiles(UINT8 x, UINT8 y, UINT8 w, UINT8 h, unsigned char *tiles);",
    "void set_bkg_data(UINT8 first_tile, UINT8 nb_tiles, unsigned char *data);",
    "void move_bkg(UINT8 x, UINT8 y);",
    "void scroll_bkg(INT8 x, INT8 y);",
    "",
    "// SPRITE FUNCTIONS",
    "void set_sprite_data(UINT8 first_tile, UINT8 nb_tiles, unsigned char *data);",
    "void set_sprite_tile(UINT8 nb, UINT8 tile);",
    "void move_sprite(UINT8 nb, UINT8 x, UINT8 y);",
    "void set_sprite_prop(UINT8 nb, UINT8 prop);",
    "",
    "// INPUT FUNCTIONS",
    "UINT8 joypad(void);",
    "UINT8 waitpad(UINT8 mask);",
    "void waitpadup(void);",
    "",
    "// SYSTEM FUNCTIONS",
    "void wait_vbl_done(void);",
    "void delay(UINT16 d);",
    "void enable_interrupts(void);",
    "void disable_interrupts(void);",
    "",
    "// DISPLAY CONTROL",
    "#define DISPLAY_ON    0x80U",
    "#define DISPLAY_OFF   0x00U",
    "#define SHOW_BKG      0x01U",
    "#define HIDE_BKG      0x00U",
    "#define SHOW_SPRITES  0x02U",
    "#define HIDE_SPRITES  0x00U",
    "",
    "// JOYPAD CONSTANTS",
    "#define J_A      0x01U",
    "#define J_B      0x02U",
    "#define J_SELECT 0x04U",
    "#define J_START  0x08U",
    "#define J_RIGHT  0x10U",
    "#define J_LEFT   0x20U",
    "#define J_UP     0x40U",
    "#define J_DOWN   0x80U",
]

TARGET_DESCRIPTIONS = {
    "dmg": "Original GameBoy, monochrome",
    "cgb": "GameBoy Color, color support",
    "sgb": "Super GameBoy, enhanced features",
}

SPECIALIZED_FOCUS = {
    "game-loop": "This is a game loop. Optimize for 60fps performance, use wait_vbl_done() for timing.",
    "sprite-animation": "This handles sprite animation. Use GBDK sprite functions efficiently, minimize VRAM updates.",
    "input-handling": "This handles input. Use joypad() function, implement proper debouncing if needed.",
    "data-structure": "This manages data structures. Optimize for GameBoy memory constraints, use fixed-size arrays.",
}


class PromptEngine:
    """Builds GameBoy-specific transpilation prompts."""

    def __init__(self, template: str = BASE_TEMPLATE):
        self.template = template

    def build_prompt(
        self,
        js_code: str,
        context: GameBoyContext,
        examples: Sequence[TranspilationExample] = (),
    ) -> str:
        """
        Build the full prompt for one piece of source code.

        Args:
            js_code: TypeScript/JavaScript source to convert
            context: Target hardware and optimization goal
            examples: Past conversions to show the model (first 3 used)

        Returns:
            Prompt text ending with the code to convert
        """
        prompt = (
            self.template
            .replace("{GAMEBOY_CONSTRAINTS}", HARDWARE_CONSTRAINTS + "\n\n" + self._build_constraints(context))
            .replace("{GBDK_FUNCTIONS}", self._build_gbdk_reference(context))
            .replace("{CONTEXT_INFO}", self._build_context_info(context))
            .replace("{OUTPUT_FORMAT}", OUTPUT_FORMAT)
            .replace("{EXAMPLES}", self._build_examples(examples) if examples else "")
        )

        prompt += f"\n\nJAVASCRIPT/TYPESCRIPT CODE TO CONVERT:\n```javascript\n{js_code}\n```\n"
        prompt += "\nConvert this to optimal GameBoy C code. Return ONLY the C code, no explanations or markdown formatting:"
        return prompt

    def create_specialized_prompt(self, js_code: str, code_type: str) -> str:
        """Prompt for a known code pattern (game-loop, sprite-animation, ...)."""
        base_prompt = self.build_prompt(js_code, GameBoyContext())
        focus = SPECIALIZED_FOCUS.get(code_type)
        if focus is None:
            return base_prompt
        return f"{base_prompt}\n\nSPECIAL FOCUS: {focus}"

    def _build_constraints(self, context: GameBoyContext) -> str:
        return "\n".join([
            f"TARGET: {context.target.upper()} ({TARGET_DESCRIPTIONS.get(context.target, 'GameBoy compatible')})",
            f"AVAILABLE RAM: {context.available_ram}KB",
            f"CURRENT ROM BANK: {context.current_bank}",
            f"OPTIMIZATION FOCUS: {context.optimize_for}",
            f"ENABLED FEATURES: {', '.join(context.features)}",
        ])

    def _build_context_info(self, context: GameBoyContext) -> str:
        info = "CONTEXT INFORMATION:\n"

        layout = context.memory_layout
        if layout:
            info += f"- Zero page variables: {', '.join(layout.zero_page)}\n"
            info += f"- Work RAM variables: {', '.join(layout.work_ram)}\n"
            if layout.ram_bank:
                info += f"- RAM bank: {layout.ram_bank}\n"

        if context.optimize_for == "size":
            info += "- PRIORITY: Minimize ROM/RAM usage\n"
            info += "- Use shortest variable types possible\n"
            info += "- Favor code density over execution speed\n"
        elif context.optimize_for == "speed":
            info += "- PRIORITY: Maximize execution speed\n"
            info += "- Use zero page for frequently accessed variables\n"
            info += "- Unroll small loops when beneficial\n"

        if context.project_context:
            info += f"\nPROJECT CONTEXT:\n{context.project_context.strip()}\n"

        return info

    def _build_gbdk_reference(self, context: GameBoyContext) -> str:
        lines = GBDK_REFERENCE

        if "sprites" not in context.features:
            lines = [line for line in lines if "sprite" not in line and "SPRITE" not in line]

        if "background" not in context.features:
            lines = [line for line in lines if "bkg" not in line and "BKG" not in line]

        joined = "\n".join(lines)
        return f"AVAILABLE GBDK FUNCTIONS:\n```c\n{joined}\n```"

    def _build_examples(self, examples: Sequence[TranspilationExample]) -> str:
        text = "\n\nEXAMPLES OF GOOD CONVERSIONS:\n"
        for index, example in enumerate(examples[:3], start=1):
            text += f"\nExample {index}:\nJavaScript:\n```javascript\n{example.js_code}\n```\n"
            text += f"GameBoy C:\n```c\n{example.c_code}\n```\n"
        return text
