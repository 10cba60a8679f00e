from typing import List, Literal, Optional

from pydantic import BaseModel


class MapLink(BaseModel):
    url: str
    source: Literal["sitemap", "index"]


class MapResponse(BaseModel):
    success: bool = True
    links: List[MapLink]
    warning: Optional[str] = None
