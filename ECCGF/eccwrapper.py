# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# eccwrapper.py
#
# @desc: Wrapper class for fastecdsa class. For Elliptic Curve and
#        Point representation, scalar masking and hashing card
#        indices to curve points.
# ===================================================================
import hashlib

import fastecdsa.curve as curvelib
from fastecdsa.point import Point as FastecdsaPoint

from ECCGF import random_generator


class ShortPoint:
    """Affine curve point, hashable so it can key the card lookup.

    Attributes:
        x (int): affine x coordinate
        y (int): affine y coordinate
    """
    __slots__ = ("x", "y")

    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __eq__(self, other):
        if not isinstance(other, ShortPoint):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self):
        return hash((self.x, self.y))

    def __repr__(self):
        return "ShortPoint(x=%#x, y=%#x)" % (self.x, self.y)


class Curve:
    name = None
    order = None
    modulus = None
    generator = None

    def __init__(self):
        raise NotImplementedError('Abstract method __init__')


class Fastecdsa(Curve):
    """Wrapper class for fastecdsa library.

    Attributes:
        _curve: curve object from fastecdsa
        name: curve name
        generator: the base point of the curve
        order: the order of the base point of the curve, which is the
            modulus of the scalar field used for masking keys
        modulus: the prime of the base field
        rand_gen: random generator object for random numbers
    """
    def __init__(self, curve):
        """
        Args:
            curve: curve object from fastecdsa

        Raises:
            ValueError: if square roots in the base field can not be taken
                with a single exponentiation (p % 4 != 3)
        """
        if curve.p % 4 != 3:
            raise ValueError(
                "curve %s is not supported: p %% 4 != 3" % curve.name)
        self._curve = curve
        self.name = curve.name
        self.generator = ShortPoint(self._curve.gx, self._curve.gy)
        self.order = self._curve.q
        self.modulus = self._curve.p
        self.rand_gen = random_generator.RandomGenerator(self.order)

    @classmethod
    def by_name(cls, name):
        """Build the wrapper for a curve exported by fastecdsa.curve

        Args:
            name (str): attribute name in fastecdsa.curve, e.g. secp256k1

        Returns:
            Fastecdsa: wrapped curve
        """
        curve = getattr(curvelib, name, None)
        if not isinstance(curve, curvelib.Curve):
            raise ValueError("unknown curve: %s" % name)
        return cls(curve)

    def multiplication(self, k, P):
        """Scalar multiplication, used to add or remove one mask layer

        Args:
            k (int): scalar in range 1 to order - 1
            P (ShortPoint): point to be multiplied

        Returns:
            ShortPoint: k*P
        """
        product = k * self.shortpoint_to_point(P)
        return ShortPoint(product.x, product.y)

    def isoncurve(self, P):
        """True if P satisfies the curve equation."""
        return self._curve.is_point_on_curve((P.x, P.y))

    def hash_to_curve(self, domain, index):
        """Map an integer to a curve point by try-and-increment: the
        x coordinate is SHA3-256(domain || index || counter) mod p, the
        counter grows until x^3 + ax + b is a square.

        Args:
            domain (bytes): domain separation tag
            index (int): value to be mapped, 0 <= index < 2^16

        Returns:
            ShortPoint: point with the smaller of both y roots
        """
        p = self.modulus
        counter = 0
        while True:
            digest = hashlib.sha3_256(
                domain + index.to_bytes(2, "big") + counter.to_bytes(2, "big")
            ).digest()
            x = int.from_bytes(digest, "big") % p
            rhs = (pow(x, 3, p) + self._curve.a * x + self._curve.b) % p
            y = pow(rhs, (p + 1) // 4, p)
            if y * y % p == rhs and rhs != 0:
                return ShortPoint(x, min(y, p - y))
            counter += 1

    def shortpoint_to_point(self, P):
        return FastecdsaPoint(P.x, P.y, curve=self._curve)
