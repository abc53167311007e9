# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# secret_provider.py
#
# @desc: Secret material of one player (masking key and shuffle seed)
#        and the witness helpers the contract asks for: modular
#        inverse, bit splitting and the weight sort of the shuffle.
# ===================================================================
import logging

from ECCGF.errors import ArithmeticFailure, ProtocolViolation
from ECCGF.random_generator import SEED_SIZE

logger = logging.getLogger(__name__)

TWO_POW_64 = 1 << 64


def field_inverse(x, order):
    """Modular inverse in the scalar field of the curve.

    Args:
        x (int): value to be inverted
        order (int): order of the curve subgroup

    Returns:
        int: y with x*y = 1 mod order

    Raises:
        ArithmeticFailure: if x = 0 mod order
    """
    if x % order == 0:
        raise ArithmeticFailure("cannot invert zero")
    try:
        return pow(x, -1, order)
    except ValueError as exc:
        raise ArithmeticFailure(
            "scalar is not invertible modulo the group order") from exc


def split_field_bits(x, order):
    """Split a field element into the high part and the low 64 bits.

    Args:
        x (int): field element, 0 <= x < order
        order (int): order of the curve subgroup

    Returns:
        (int, int): high, low with high*2^64 + low = x
    """
    if not 0 <= x < order:
        raise ArithmeticFailure("value %d is outside the scalar field" % x)
    return x >> 64, x & (TWO_POW_64 - 1)


def sorted_deck_witness(pairs):
    """Stable sort of (point, weight) pairs by weight."""
    return sorted(pairs, key=lambda pair: pair[1])


class SecretProvider:
    """Capability handing out the secrets of exactly one player.

    Attributes:
        player (int): player the secrets belong to, 1 or 2
        order (int): order of the curve subgroup
    """
    player = None
    order = None

    def __init__(self):
        raise NotImplementedError('Abstract method __init__')

    def _secret_key(self):
        raise NotImplementedError('Abstract method _secret_key')

    def _shuffle_seed(self):
        raise NotImplementedError('Abstract method _shuffle_seed')

    def _check_owner(self, player):
        if player != self.player:
            raise ProtocolViolation(
                "secrets of player %s are not available to player %d"
                % (player, self.player))

    def secret_key(self, player):
        """Get the masking key of player

        Args:
            player (int): player index, must be the owner of the provider

        Returns:
            int: secret scalar in range 1 to order - 1
        """
        self._check_owner(player)
        return self._secret_key()

    def shuffle_seed(self, player):
        """Get the shuffle seed of player

        Args:
            player (int): player index, must be the owner of the provider

        Returns:
            bytes: 32 byte seed
        """
        self._check_owner(player)
        return self._shuffle_seed()

    def field_inverse(self, x):
        return field_inverse(x, self.order)

    def split_field_bits(self, x):
        return split_field_bits(x, self.order)

    def sorted_deck_witness(self, pairs):
        return sorted_deck_witness(pairs)


class RandomSecretProvider(SecretProvider):
    """Secrets drawn once from the system random source."""

    def __init__(self, curve, player):
        """
        Args:
            curve (Fastecdsa): curve the key is used on
            player (int): owner of the secrets
        """
        self.player = player
        self.order = curve.order
        self.__key = curve.rand_gen.get_random_value()
        self.__seed = curve.rand_gen.get_random_bytes(SEED_SIZE)
        logger.debug("generated secrets for player %d", player)

    def _secret_key(self):
        return self.__key

    def _shuffle_seed(self):
        return self.__seed


class FixedSecretProvider(SecretProvider):
    """Secrets given by the caller, for tests and replays."""

    def __init__(self, curve, player, secret_key, shuffle_seed):
        """
        Args:
            curve (Fastecdsa): curve the key is used on
            player (int): owner of the secrets
            secret_key (int): masking key in range 1 to order - 1
            shuffle_seed (bytes): 32 byte seed
        """
        if not 0 < secret_key < curve.order:
            raise ValueError("secret key must be in range 1 to order - 1")
        if len(shuffle_seed) != SEED_SIZE:
            raise ValueError("shuffle seed must be %d bytes" % SEED_SIZE)
        self.player = player
        self.order = curve.order
        self.__key = secret_key
        self.__seed = bytes(shuffle_seed)

    def _secret_key(self):
        return self.__key

    def _shuffle_seed(self):
        return self.__seed
