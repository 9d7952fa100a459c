"""Map markers plotted over the external tile provider."""

from typing import List, Tuple

from pydantic import BaseModel

OSM_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
OSM_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
)
INDIA_CENTER: Tuple[float, float] = (20.5937, 78.9629)


class MapMarker(BaseModel):
    id: str
    complaint_code: str
    issue_type: str
    status: str
    latitude: float
    longitude: float


class MapView(BaseModel):
    center: Tuple[float, float] = INDIA_CENTER
    zoom: int = 5
    tile_url: str = OSM_TILE_URL
    attribution: str = OSM_ATTRIBUTION
    markers: List[MapMarker] = []
