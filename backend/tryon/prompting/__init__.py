"""Prompt assembly package.

Exports:
    assemble: Build the final try-on instruction
    AssemblyResult: Prompt text plus diagnostics
"""

from .assembler import AssemblyResult, assemble
from .sections import PRIORITY_RULE, PromptSections, build_clothing_description, compose

__all__ = [
    "PRIORITY_RULE",
    "AssemblyResult",
    "PromptSections",
    "assemble",
    "build_clothing_description",
    "compose",
]
