"""
Result types shared by the detection, classification and OCR stages.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

VEHICLE_CLASS_ID = 1
PLATE_CLASS_ID = 2


@dataclass(frozen=True)
class Rectangle:
    """Integer rectangle in pixel coordinates. Zero or negative size means empty."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def area(self) -> int:
        if self.is_empty:
            return 0
        return self.width * self.height

    def intersect(self, other: "Rectangle") -> "Rectangle":
        """
        Intersection of two rectangles.

        Returns:
            The overlapping rectangle, or an empty rectangle if they do not overlap
        """
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        if x2 <= x1 or y2 <= y1:
            return Rectangle(0, 0, 0, 0)
        return Rectangle(x1, y1, x2 - x1, y2 - y1)

    def to_box(self) -> List[int]:
        """Convert to [x1, y1, x2, y2] box format"""
        return [self.x, self.y, self.right, self.bottom]


@dataclass
class DetectedObject:
    """A single detector output: class id, confidence and region"""
    class_id: int
    confidence: float
    region: Rectangle

    @property
    def is_vehicle(self) -> bool:
        return self.class_id == VEHICLE_CLASS_ID

    @property
    def is_plate(self) -> bool:
        return self.class_id == PLATE_CLASS_ID


@dataclass
class LicensePlate:
    """A license plate region and its recognized text"""
    region: Rectangle
    text: str = ""

    def as_dict(self) -> Dict[str, Any]:
        x1, y1, x2, y2 = self.region.to_box()
        return {"plate": self.text, "x_min": x1, "y_min": y1, "x_max": x2, "y_max": y2}


@dataclass
class Vehicle:
    """A detected vehicle with its attributes and at most one license plate"""
    region: Rectangle
    color: str
    type: str
    license_plate: Optional[LicensePlate] = None

    def contains_plate(self, plate: LicensePlate, plate_overlap_ratio: float = 0.8) -> bool:
        """
        Check whether the plate lies inside this vehicle.

        Args:
            plate: The license plate
            plate_overlap_ratio: Fraction of the plate area that must overlap the vehicle

        Returns:
            True if the overlap area divided by the plate area reaches the ratio
        """
        if self.region.is_empty or plate.region.is_empty:
            return False
        overlap = plate.region.intersect(self.region)
        return overlap.area / plate.region.area >= plate_overlap_ratio

    @property
    def plate_text(self) -> str:
        return self.license_plate.text if self.license_plate is not None else ""

    @property
    def label(self) -> str:
        return f"{self.color} {self.type} {self.plate_text}"

    def as_dict(self) -> Dict[str, Any]:
        x1, y1, x2, y2 = self.region.to_box()
        result = {
            "label": self.label.strip(),
            "color": self.color,
            "type": self.type,
            "plate": self.plate_text,
            "x_min": x1,
            "y_min": y1,
            "x_max": x2,
            "y_max": y2,
        }
        if self.license_plate is not None:
            result["license_plate"] = self.license_plate.as_dict()
        return result
