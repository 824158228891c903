"""
Implicit polynomial surfaces f(x, y, z) = 0 of degree 1 to 4.

A surface is a sparse map from monomial exponents (i, j, k) to coefficients,
evaluated in coordinates relative to `position`. Substituting a ray gives a
univariate polynomial in the travelled distance whose real roots are the
boundary crossings. Which side of the surface is "inside" is decided by a
reference point: the crossings between that point and the ray origin are
counted and their parity tells whether the origin shares the point's side.
Without a reference point the region f < 0 is inside.
"""
import math
import re
from dataclasses import dataclass

from minirt.intersections import solve_polynomial
from minirt.materials import DEFAULT_MATERIAL, Hit, Material
from minirt.surfaces import Surface
from minirt.vector import Direction, Position, Ray, Vec3

_MONOMIAL = re.compile(r"([xyz])(?:\^(\d+))?")

# Names accepted by implicit_surface(), grouped by degree.
MONOMIAL_NAMES = (
    "x^4", "y^4", "z^4", "x^3y", "x^3z", "xy^3", "y^3z", "xz^3", "yz^3",
    "x^2yz", "xy^2z", "xyz^2", "x^2y^2", "y^2z^2", "x^2z^2",
    "x^3", "y^3", "z^3", "x^2y", "x^2z", "xy^2", "y^2z", "xz^2", "yz^2", "xyz",
    "x^2", "y^2", "z^2", "xy", "yz", "xz",
    "x", "y", "z",
    "0",
)


def parse_monomial(name):
    """
    Convert a monomial name such as "x^2yz" into exponents (2, 1, 1).

    "0" names the constant term.
    """
    name = name.replace(" ", "")
    if name in ("0", "1", ""):
        return (0, 0, 0)
    exponents = {"x": 0, "y": 0, "z": 0}
    position = 0
    for match in _MONOMIAL.finditer(name):
        if match.start() != position:
            break
        variable, power = match.groups()
        if exponents[variable]:
            raise ValueError(f"Variable {variable} repeated in monomial {name!r}")
        exponents[variable] = int(power) if power is not None else 1
        position = match.end()
    if position != len(name):
        raise ValueError(f"Invalid monomial name {name!r}")
    return (exponents["x"], exponents["y"], exponents["z"])


def _poly_mul(a, b):
    """Product of two polynomials stored lowest degree first."""
    result = [0.0] * (len(a) + len(b) - 1)
    for i, ca in enumerate(a):
        if ca == 0.0:
            continue
        for j, cb in enumerate(b):
            result[i + j] += ca * cb
    return result


def _binomial_powers(origin, direction, degree):
    """Coefficients of (origin + t * direction)^n for n = 0..degree."""
    powers = [[1.0]]
    for _ in range(degree):
        powers.append(_poly_mul(powers[-1], [origin, direction]))
    return powers


def orient_normal(gradient, ray_direction, entering):
    """
    Turn a gradient into the outward normal at a crossing.

    Entries face against the ray, exits face along it. A vanishing gradient
    falls back to the ray direction itself.
    """
    if gradient.is_degenerate():
        return -ray_direction if entering else ray_direction
    normal = gradient.normalize()
    facing = normal.dot(ray_direction)
    if (entering and facing > 0.0) or (not entering and facing < 0.0):
        return -normal
    return normal


@dataclass(frozen=True, eq=False)
class ImplicitSurface(Surface):
    """
    Polynomial surface of bounded degree.

    Attributes:
        terms: Tuple of ((i, j, k), coefficient) pairs; a mapping is accepted
            and normalized at construction.
        position: Origin of the polynomial's coordinate system.
        material: Surface material.
        point: Optional reference point whose side is known.
        is_point_inside: Whether `point` lies inside the solid.
    """
    max_degree = 4

    terms: tuple
    position: Position = Position(0.0, 0.0, 0.0)
    material: Material = DEFAULT_MATERIAL
    point: Position | None = None
    is_point_inside: bool = False

    def __post_init__(self):
        items = self.terms.items() if hasattr(self.terms, "items") else self.terms
        merged = {}
        for exponents, coefficient in items:
            if isinstance(exponents, str):
                exponents = parse_monomial(exponents)
            exponents = tuple(int(e) for e in exponents)
            if len(exponents) != 3 or min(exponents) < 0:
                raise ValueError(f"Invalid monomial exponents {exponents}")
            coefficient = float(coefficient)
            if not math.isfinite(coefficient):
                raise ValueError(f"Coefficient for {exponents} must be finite")
            if coefficient == 0.0:
                continue
            if sum(exponents) > self.max_degree:
                raise ValueError(
                    f"{type(self).__name__} allows degree <= {self.max_degree}, "
                    f"got monomial of degree {sum(exponents)}")
            merged[exponents] = merged.get(exponents, 0.0) + coefficient
        if not any(sum(e) > 0 for e in merged):
            raise ValueError(f"{type(self).__name__} needs at least one non-constant term")
        object.__setattr__(self, "terms", tuple(sorted(merged.items())))

    @property
    def degree(self) -> int:
        return max(sum(e) for e, _ in self.terms)

    def evaluate(self, point: Position) -> float:
        local = point - self.position
        return sum(c * local.x ** i * local.y ** j * local.z ** k
                   for (i, j, k), c in self.terms)

    def gradient(self, point: Position) -> Vec3:
        x, y, z = point - self.position
        gx = gy = gz = 0.0
        for (i, j, k), c in self.terms:
            if i:
                gx += c * i * x ** (i - 1) * y ** j * z ** k
            if j:
                gy += c * j * x ** i * y ** (j - 1) * z ** k
            if k:
                gz += c * k * x ** i * y ** j * z ** (k - 1)
        return Vec3(gx, gy, gz)

    def ray_polynomial(self, ray: Ray):
        """Coefficients of f(origin + t * direction), highest degree first."""
        degree = self.degree
        o = ray.origin - self.position
        d = ray.direction
        px = _binomial_powers(o.x, d.x, degree)
        py = _binomial_powers(o.y, d.y, degree)
        pz = _binomial_powers(o.z, d.z, degree)

        result = [0.0] * (degree + 1)
        for (i, j, k), c in self.terms:
            product = _poly_mul(_poly_mul(px[i], py[j]), pz[k])
            for power, value in enumerate(product):
                result[power] += c * value
        return result[::-1]

    def crossings(self, ray: Ray):
        """
        All real roots of the surface along the ray, ascending.

        The polynomial is solved from the ray point closest to `position`, so
        distant ray origins do not inflate its coefficients.
        """
        shift = -(ray.origin - self.position).dot(ray.direction)
        near = Ray(ray.at(shift), ray.direction)
        return [shift + s for s in solve_polynomial(self.ray_polynomial(near))]

    def contains(self, location: Position) -> bool:
        """Whether `location` is inside the solid bounded by this surface."""
        if self.point is None:
            return self.evaluate(location) < 0.0
        offset = location - self.point
        length = offset.length()
        if length < 1e-12:
            return self.is_point_inside
        segment = Ray(self.point, offset.normalize())
        crossed = sum(1 for t in self.crossings(segment) if 0.0 < t < length)
        return (crossed % 2 == 0) == self.is_point_inside

    def test(self, ray: Ray) -> list[Hit]:
        inside = self.contains(ray.origin)
        hits = []
        if inside:
            hits.append(self.material.hit(0.0, -ray.direction, True))

        for t in self.crossings(ray):
            if t < 0.0:
                continue
            entering = not inside
            normal = orient_normal(self.gradient(ray.at(t)), ray.direction, entering)
            hits.append(self.material.hit(t, normal, entering))
            inside = entering

        if inside:
            hits.append(self.material.hit(math.inf, ray.direction, False))
        return hits


@dataclass(frozen=True, eq=False)
class Plane(ImplicitSurface):
    """Half-space c100 x + c010 y + c001 z + c000 <= 0."""
    max_degree = 1


@dataclass(frozen=True, eq=False)
class Quadric(ImplicitSurface):
    max_degree = 2


@dataclass(frozen=True, eq=False)
class Quadratic(ImplicitSurface):
    """Cubic implicit surface."""
    max_degree = 3


@dataclass(frozen=True, eq=False)
class Quartic(ImplicitSurface):
    max_degree = 4


_BY_DEGREE = {1: Plane, 2: Quadric, 3: Quadratic, 4: Quartic}


def implicit_surface(terms, position=None, material=DEFAULT_MATERIAL,
                     point=None, is_point_inside=False, max_degree=4):
    """
    Build the lowest-degree surface class able to hold `terms`.

    Args:
        terms: Mapping of monomial names (see MONOMIAL_NAMES) or exponent
            triples to coefficients.
        max_degree: Reject terms above this degree.

    Returns:
        A Plane, Quadric, Quadratic or Quartic.
    """
    items = terms.items() if hasattr(terms, "items") else terms
    parsed = [(parse_monomial(e) if isinstance(e, str) else tuple(e), float(c)) for e, c in items]
    degree = max((sum(e) for e, c in parsed if c != 0.0), default=0)
    if degree > max_degree:
        raise ValueError(f"Surface degree {degree} exceeds the allowed {max_degree}")
    cls = _BY_DEGREE.get(degree, Plane)
    return cls(
        terms=tuple(parsed),
        position=position if position is not None else Position(0.0, 0.0, 0.0),
        material=material,
        point=point,
        is_point_inside=is_point_inside,
    )
