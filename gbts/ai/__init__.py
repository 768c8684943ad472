# ==============================================
# AI TRANSPILATION
# ==============================================
#
# Modules:
# --------
# - models.py             → Dataclasses shared by every stage
# - prompt_engine.py      → Prompt construction
# - providers/            → Claude, OpenAI, OpenRouter, local LLM
# - cache.py              → Bounded result cache with TTL
# - transpiler.py         → AITranspiler (retries, budget, learning)
# - project_analyzer.py   → File scan, imports/exports, chunking
# - schema_generator.py   → Cross-file schema and chunk context
# - project_transpiler.py → Multi-file orchestration and assembly
#
# gbts.config imports models from here, so this package does not
# import its submodules eagerly.
#
# ==============================================
