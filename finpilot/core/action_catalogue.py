from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from finpilot.config import get_settings

DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parent.parent / "data" / "action_catalogue.json"


class ActionRoute(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: str
    method: str = "GET"
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    example_queries: List[str] = Field(default_factory=list, alias="exampleQueries")


class ActionCatalogue(BaseModel):
    """Read-only description of the actions a voice query can be routed to."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    routes: List[ActionRoute]
    common_categories: List[str] = Field(default_factory=list, alias="commonCategories")
    common_queries: List[Dict[str, Any]] = Field(default_factory=list, alias="commonQueries")

    def routes_json(self) -> str:
        return json.dumps([r.model_dump(by_alias=True) for r in self.routes], indent=2, ensure_ascii=False)

    def examples_json(self) -> str:
        return json.dumps(self.common_queries, indent=2, ensure_ascii=False)


def read_catalogue(path: Path) -> ActionCatalogue:
    with open(path, "r", encoding="utf-8") as f:
        return ActionCatalogue.model_validate(json.load(f))


@lru_cache(maxsize=1)
def load_action_catalogue(path: Optional[str] = None) -> ActionCatalogue:
    p = Path(path or get_settings().ACTION_CATALOGUE_PATH or DEFAULT_CATALOGUE_PATH)
    catalogue = read_catalogue(p)
    logger.info("Loaded action catalogue from {} routes={}", p, len(catalogue.routes))
    return catalogue
