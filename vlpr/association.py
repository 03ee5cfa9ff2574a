"""
Assignment of license plates to the vehicles that contain them.
"""
from typing import List, Sequence

from .types import LicensePlate, Vehicle


def associate(vehicles: Sequence[Vehicle], plates: Sequence[LicensePlate],
              overlap_ratio: float = 0.8) -> List[LicensePlate]:
    """
    Attach each plate to the first vehicle that contains it.

    Plates are visited in detection order and each one scans the vehicles in
    detection order, stopping at the first match. The overlap magnitude beyond
    the ratio and the detection confidence play no part.

    Args:
        vehicles: Vehicles to update in place
        plates: Plates to assign
        overlap_ratio: Fraction of the plate area that must lie inside the vehicle

    Returns:
        Plates that matched no vehicle
    """
    unmatched = []
    for plate in plates:
        for vehicle in vehicles:
            if vehicle.contains_plate(plate, overlap_ratio):
                vehicle.license_plate = plate
                break
        else:
            unmatched.append(plate)
    return unmatched
