"""
Complaint Map — plots located complaints over an external tile provider.

Display-only: reads located complaints once per call and never writes.
"""

import logging
from typing import List, Optional

from nagar_rakshak.models.map_view import MapMarker, MapView
from nagar_rakshak.query.builder import QueryBuilder
from nagar_rakshak.record_store.store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


def tile_url(template: str, z: int, x: int, y: int, subdomain: str = "a") -> str:
    """Address of one map tile."""
    if not 0 <= x < 2 ** z or not 0 <= y < 2 ** z:
        raise ValueError(f"Tile ({x}, {y}) is outside zoom level {z}")
    return template.format(s=subdomain, z=z, x=x, y=y)


class ComplaintMap:
    def __init__(self, store: RecordStore, query_builder: Optional[QueryBuilder] = None):
        self.store = store
        self.query_builder = query_builder or QueryBuilder()

    def fetch_markers(self) -> List[MapMarker]:
        """Markers for complaints with both coordinates. Empty on read failure."""
        try:
            result = self.store.select_complaints(self.query_builder.build_map_query())
        except RecordStoreError as e:
            logger.error("Error fetching complaint locations: %s", e)
            return []

        markers = []
        for row in result.rows:
            # The query already excludes these; guard against a store that doesn't.
            if row.get("gps_latitude") is None or row.get("gps_longitude") is None:
                continue
            markers.append(MapMarker(
                id=row["id"],
                complaint_code=row["complaint_code"],
                issue_type=row["issue_type"],
                status=row["status"],
                latitude=row["gps_latitude"],
                longitude=row["gps_longitude"],
            ))
        return markers

    def render(self) -> MapView:
        return MapView(markers=self.fetch_markers())
