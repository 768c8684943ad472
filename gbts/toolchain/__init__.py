# ==============================================
# Toolchain: external build steps
# ==============================================
#
# command.py    → Command: transpile / compile / link / make-rom chains
# installer.py  → gbdk-n download and extraction
#
# ==============================================

from .command import Command

__all__ = ["Command"]
