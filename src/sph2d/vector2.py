from __future__ import annotations

from dataclasses import dataclass
from collections.abc import Iterator

import math


# ---------------------------
# 2D vector value type
# ---------------------------
@dataclass(frozen=True, slots=True)
class Vector2:
    """Immutable 2-component float vector.

    Every operation returns a new value. Augmented assignment (``v += w``,
    ``v *= s``, ...) rebinds the name, which is how particle fields are
    updated in place. Division and normalization by zero give the zero
    vector instead of raising.
    """
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def zero(cls) -> Vector2:
        return cls(0.0, 0.0)

    # -------- arithmetic --------
    def add(self, v: Vector2) -> Vector2:
        return Vector2(self.x + v.x, self.y + v.y)

    def sub(self, v: Vector2) -> Vector2:
        return Vector2(self.x - v.x, self.y - v.y)

    def scale(self, f: float) -> Vector2:
        return Vector2(self.x * f, self.y * f)

    def div(self, f: float) -> Vector2:
        if f == 0.0:
            return Vector2(0.0, 0.0)
        return Vector2(self.x / f, self.y / f)

    def negate(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def __add__(self, v: Vector2) -> Vector2:
        return self.add(v)

    def __sub__(self, v: Vector2) -> Vector2:
        return self.sub(v)

    def __mul__(self, f: float) -> Vector2:
        return self.scale(f)

    def __rmul__(self, f: float) -> Vector2:
        return self.scale(f)

    def __truediv__(self, f: float) -> Vector2:
        return self.div(f)

    def __neg__(self) -> Vector2:
        return self.negate()

    # -------- products & norms --------
    def dot(self, v: Vector2) -> float:
        return self.x * v.x + self.y * v.y

    def cross(self, v: Vector2) -> float:
        """z-component of the 3D cross product of (x, y, 0) and (v.x, v.y, 0)."""
        return self.x * v.y - self.y * v.x

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vector2:
        return self.div(self.length())

    # -------- rotation --------
    def rotate(self, angle: float) -> Vector2:
        """Rotate counter-clockwise by ``angle`` radians."""
        c = math.cos(angle)
        s = math.sin(angle)
        return Vector2(c * self.x - s * self.y, s * self.x + c * self.y)

    def rotate_inverse(self, angle: float) -> Vector2:
        """Rotate clockwise by ``angle`` radians (inverse of :meth:`rotate`)."""
        c = math.cos(angle)
        s = math.sin(angle)
        return Vector2(c * self.x + s * self.y, -s * self.x + c * self.y)

    # -------- tuple-like access --------
    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __getitem__(self, i: int) -> float:
        return (self.x, self.y)[i]

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


def dot(v1: Vector2, v2: Vector2) -> float:
    return v1.x * v2.x + v1.y * v2.y


def cross(v1: Vector2, v2: Vector2) -> float:
    return v1.x * v2.y - v1.y * v2.x


def cross_scalar(v: Vector2, f: float) -> Vector2:
    """Cross product of a 2D vector with a scalar z-axis vector: (-f*y, f*x)."""
    return Vector2(-f * v.y, v.x * f)
