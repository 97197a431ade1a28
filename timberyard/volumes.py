# Timber volume and area helpers. Beam cross-sections and board thicknesses
# are quoted in millimetres, lengths and areas in metres. No rounding here.

MM_PER_M = 1000.0


def mm_to_m(mm: float) -> float:
    """Convert millimetres to metres."""
    return mm / MM_PER_M


def beam_volume_m3(length_m: float, width_mm: float, thickness_mm: float) -> float:
    """
    Volume of one beam in m³.
    Length in metres, cross-section in millimetres.
    """
    return length_m * mm_to_m(width_mm) * mm_to_m(thickness_mm)


def floor_area_m2(area_m2: float = None, length_m: float = None, width_m: float = None) -> float:
    """Floor area: the declared area wins, otherwise length × width in metres."""
    if area_m2 is not None:
        return area_m2
    if length_m is None or width_m is None:
        return 0.0
    return length_m * width_m


def flooring_volume_m3(area_m2: float, thickness_mm: float) -> float:
    """Volume of flooring boards covering area_m2 at the given board thickness."""
    return area_m2 * mm_to_m(thickness_mm)
