from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class AISkill(str, Enum):
    BEGINNER = "beginner"
    CASUAL = "casual"
    CLUB = "club"
    EXPERT = "expert"
    MASTER = "master"
    GRANDMASTER = "grandmaster"
    ENGINE_PLUS = "engine_plus"


@dataclass(frozen=True)
class SearchConfig:
    max_depth: int
    time_limit: float  # seconds
    quiescence: bool


SKILL_TABLE: Dict[AISkill, SearchConfig] = {
    AISkill.BEGINNER: SearchConfig(max_depth=1, time_limit=0.2, quiescence=False),
    AISkill.CASUAL: SearchConfig(max_depth=2, time_limit=0.4, quiescence=False),
    AISkill.CLUB: SearchConfig(max_depth=3, time_limit=0.7, quiescence=True),
    AISkill.EXPERT: SearchConfig(max_depth=4, time_limit=1.2, quiescence=True),
    AISkill.MASTER: SearchConfig(max_depth=5, time_limit=2.5, quiescence=True),
    AISkill.GRANDMASTER: SearchConfig(max_depth=6, time_limit=5.0, quiescence=True),
    AISkill.ENGINE_PLUS: SearchConfig(max_depth=7, time_limit=10.0, quiescence=True),
}


def config_for(skill: AISkill) -> SearchConfig:
    return SKILL_TABLE[AISkill(skill)]
