"""
Analytic real-root solvers used by the ray/surface intersection code.

Every solver returns the real roots in ascending order, repeated according to
multiplicity (a tangent ray yields the same distance twice). Degenerate
leading coefficients drop the polynomial to the next lower degree instead of
dividing by (almost) zero.
"""
import math

from minirt import constants


def _cbrt(value):
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def _is_negligible(leading, others):
    """
    Whether the leading term can be dropped.

    `others` are the lower coefficients, next-highest first. The leading term
    is negligible when some lower term still outweighs it at distance
    ROOT_MAGNITUDE_LIMIT, so it would only add roots beyond that distance.
    """
    if leading == 0.0:
        return True
    limit = constants.ROOT_MAGNITUDE_LIMIT
    return any(abs(c) > abs(leading) * limit ** gap for gap, c in enumerate(others, start=1))


def _polish(coefficients, roots):
    """Refine roots with a few Newton steps on the original polynomial."""
    degree = len(coefficients) - 1
    polished = []
    for root in roots:
        t = root
        for _ in range(constants.NEWTON_POLISH_STEPS):
            value = 0.0
            slope = 0.0
            for power, c in enumerate(coefficients):
                exponent = degree - power
                value = value * t + c
                if exponent > 0:
                    slope = slope * t + c * exponent
            if slope == 0.0 or not math.isfinite(slope):
                break
            step = value / slope
            if not math.isfinite(step):
                break
            t -= step
        polished.append(t)
    return polished


def solve_linear(a, b):
    """Solve a*t + b = 0."""
    if _is_negligible(a, (b,)):
        return []
    return [-b / a]


def solve_quadratic(a, b, c):
    """
    Solve a*t^2 + b*t + c = 0.

    Uses the cancellation-free form q = -(b + sign(b) sqrt(disc)) / 2 so the
    smaller root keeps full precision.
    """
    if _is_negligible(a, (b, c)):
        return solve_linear(b, c)

    discriminant = b * b - 4.0 * a * c
    if not discriminant >= 0.0:
        return []

    sqrt_disc = math.sqrt(discriminant)
    q = -0.5 * (b + math.copysign(sqrt_disc, b))
    if q == 0.0:
        # b == 0 and c == 0
        return [0.0, 0.0]
    t1 = q / a
    t2 = c / q
    roots = sorted((t1, t2))
    if any(math.isnan(t) for t in roots):
        return []
    return roots


def solve_cubic(a, b, c, d):
    """Solve a*t^3 + b*t^2 + c*t + d = 0 (Cardano / trigonometric form)."""
    if _is_negligible(a, (b, c, d)):
        return solve_quadratic(b, c, d)

    A = b / a
    B = c / a
    C = d / a

    # Depressed cubic x^3 + p x + q with t = x - A/3
    shift = A / 3.0
    p = B - A * A / 3.0
    q = 2.0 * A ** 3 / 27.0 - A * B / 3.0 + C

    discriminant = (q / 2.0) ** 2 + (p / 3.0) ** 3
    scale = max(abs(p) ** 3, q * q, 1e-300)

    if abs(discriminant) <= 1e-14 * scale:
        if abs(p) <= 1e-14:
            roots = [0.0, 0.0, 0.0]
        else:
            u = _cbrt(-q / 2.0)
            roots = [2.0 * u, -u, -u]
    elif discriminant > 0.0:
        sqrt_disc = math.sqrt(discriminant)
        roots = [_cbrt(-q / 2.0 + sqrt_disc) + _cbrt(-q / 2.0 - sqrt_disc)]
    else:
        radius = 2.0 * math.sqrt(-p / 3.0)
        argument = 3.0 * q / (p * radius)
        phi = math.acos(max(-1.0, min(1.0, argument)))
        roots = [radius * math.cos((phi - 2.0 * math.pi * k) / 3.0) for k in range(3)]

    roots = [x - shift for x in roots]
    return sorted(_polish((1.0, A, B, C), roots))


def solve_quartic(a, b, c, d, e):
    """
    Solve a*t^4 + b*t^3 + c*t^2 + d*t + e = 0 (Ferrari).

    The depressed quartic y^4 + p y^2 + q y + r is split into two quadratics
    using the largest root m of the resolvent cubic
    m^3 + p m^2 + (p^2/4 - r) m - q^2/8.
    """
    if _is_negligible(a, (b, c, d, e)):
        return solve_cubic(b, c, d, e)

    A = b / a
    B = c / a
    C = d / a
    D = e / a

    shift = A / 4.0
    p = B - 3.0 * A * A / 8.0
    q = C - A * B / 2.0 + A ** 3 / 8.0
    r = D - A * C / 4.0 + A * A * B / 16.0 - 3.0 * A ** 4 / 256.0

    resolvent = solve_cubic(1.0, p, p * p / 4.0 - r, -q * q / 8.0)
    m = max(resolvent) if resolvent else 0.0

    if m > 1e-12:
        s = math.sqrt(2.0 * m)
        offset = q / (4.0 * m)
        roots = solve_quadratic(1.0, -s, p / 2.0 + m + s * offset)
        roots += solve_quadratic(1.0, s, p / 2.0 + m - s * offset)
    else:
        # Biquadratic: z = y^2
        roots = []
        for z in solve_quadratic(1.0, p, r):
            if z > 0.0:
                root = math.sqrt(z)
                roots += [-root, root]
            elif z > -1e-12:
                roots += [0.0, 0.0]

    roots = [y - shift for y in roots]
    return sorted(_polish((1.0, A, B, C, D), roots))


_SOLVERS = {
    1: solve_linear,
    2: solve_quadratic,
    3: solve_cubic,
    4: solve_quartic,
}


def solve_polynomial(coefficients):
    """
    Real roots of a polynomial given highest-degree coefficient first.

    Args:
        coefficients: Sequence of 1 to 5 coefficients.

    Returns:
        Ascending list of real roots (with multiplicity).
    """
    coefficients = [float(c) for c in coefficients]
    degree = len(coefficients) - 1
    if degree < 1:
        return []
    if degree not in _SOLVERS:
        raise ValueError(f"Unsupported polynomial degree {degree}")
    return [t for t in _SOLVERS[degree](*coefficients) if math.isfinite(t)]
