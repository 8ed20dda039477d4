"""Generation plan: the parsed form of a scaffoldgen config document."""

from scaffoldgen.plan.loader import load_plan, parse_plan
from scaffoldgen.plan.models import CommandEntry, FileEntry, GenerationPlan

__all__ = [
    "CommandEntry",
    "FileEntry",
    "GenerationPlan",
    "load_plan",
    "parse_plan",
]
