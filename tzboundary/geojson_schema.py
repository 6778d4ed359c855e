from typing import Any, List, Union
from typing_extensions import Literal

from pydantic import AliasPath, BaseModel, Field

# NOTE: positions are kept as plain float lists (altitude components are tolerated).
# the geometric validity of every ring is checked while converting a feature into boundary records


class PolygonGeometry(BaseModel):
    """data representation of a timezone geometry consisting of a single polygon with holes"""

    type: Literal["Polygon"]
    # depth: 3
    coordinates: List[List[List[float]]]


class MultiPolygonGeometry(BaseModel):
    """data representation of a timezone geometry consisting of multiple polygons with holes"""

    type: Literal["MultiPolygon"]
    # depth: 4
    coordinates: List[List[List[List[float]]]]


class Timezone(BaseModel):
    """data representation of a timezone"""

    type: Literal["Feature"]
    id: str = Field(..., validation_alias=AliasPath("properties", "tzid"))
    geometry: Union[PolygonGeometry, MultiPolygonGeometry]

    @property
    def polygons(self) -> List[List[List[List[float]]]]:
        """all polygons (each a list of rings: the boundary followed by its holes)"""
        if isinstance(self.geometry, PolygonGeometry):
            return [self.geometry.coordinates]
        return self.geometry.coordinates


class GeoJSON(BaseModel):
    """schema for a timezone dataset in GeoJSON format

    the features are validated one by one (as ``Timezone``),
    a single malformed feature must not render the whole dataset unusable
    """

    type: Literal["FeatureCollection"]
    features: List[Any]
