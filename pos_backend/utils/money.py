import math

EPSILON = 0.01  # slack allowed between client totals and recomputed totals


def round2(x: float) -> float:
    return float(f"{x:.2f}")


def is_amount(x) -> bool:
    """A real, finite number; NaN and +/-inf are never money."""
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


def close_enough(a: float, b: float) -> bool:
    # small extra margin so 0.01 float noise does not flip the comparison
    return abs(a - b) <= EPSILON + 1e-9


def apply_markup_discount(subtotal: float, markup: float, discount: float) -> float:
    marked_up = subtotal * (1 + markup / 100.0)
    return marked_up * (1 - discount / 100.0)
