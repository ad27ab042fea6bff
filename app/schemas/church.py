from typing import List, Optional

from .base import CamelModel


class ChurchBranchOut(CamelModel):
    id: int
    church_id: int
    name: str
    address: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_verified: bool = False


class ChurchOut(CamelModel):
    id: int
    name: str
    aliases: Optional[List[str]] = None
    address: Optional[str] = None
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_verified: bool = False
    branches: List[ChurchBranchOut] = []
