"""Judge collaborator clients.

Exports:
    ScenarioJudge: Abstract judge interface
    GrokJudge: xAI Grok implementation
    judge_client: Build the configured judge from settings
"""

from .grok_judge import GrokJudge, GrokJudgeConfig
from .judge_interface import JudgeRequest, JudgeSelection, ScenarioJudge
from .judge_selector import judge_client

__all__ = [
    "GrokJudge",
    "GrokJudgeConfig",
    "JudgeRequest",
    "JudgeSelection",
    "ScenarioJudge",
    "judge_client",
]
