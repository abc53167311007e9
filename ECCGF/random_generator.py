# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# random_generator.py
#
# @desc: Random numbers, seeds and hash-derived shuffle weights used
#        for elliptic curve masking of the card deck.
# ===================================================================
import secrets
import hashlib

SEED_SIZE = 32


class RandomGenerator:
    """Class for different random values and weights

    Attributes:
        order (int): order of the elliptic curve subgroup
    """

    def __init__(self, order):
        """
        Args:
            order (int): order of the elliptic curve subgroup
        """
        self.order = order

    def get_random_value(self):
        """Get one random value in range 1 to order- 1

        Returns:
            int: random value in range 1 to order - 1
        """
        return 1 + secrets.randbelow(self.order-1)

    @staticmethod
    def get_random_bytes(size=SEED_SIZE):
        """Get size random bytes, used for shuffle seeds and game ids

        Args:
            size (int): number of bytes

        Returns:
            bytes: random bytes
        """
        return secrets.token_bytes(size)

    def get_weights_from_seed(self, seed, size):
        """Derive one field element per deck position from a seed,
        weight[i] = SHA3-256(seed || i) mod order

        Args:
            seed (bytes): shuffle seed of one player
            size (int): number of weights

        Returns:
            List[int]: weights in range 0 to order - 1
        """
        weights = []
        for i in range(size):
            var0 = hashlib.sha3_256()
            var0.update(seed)
            var0.update(i.to_bytes(2, "big"))
            weights.append(int.from_bytes(var0.digest(), "big") % self.order)
        return weights
