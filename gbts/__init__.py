# ==============================================
# GBTS: GameBoy TypeScript toolchain
# ==============================================
#
# Package Structure:
#
# gbts/
# ├── ai/               # AI transpilation (providers, cache, project pipeline)
# ├── toolchain/        # GBDK build steps and installer
# ├── config.py         # Configuration management
# ├── errors.py         # Exception hierarchy
# ├── logger.py         # Console status reporting
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
