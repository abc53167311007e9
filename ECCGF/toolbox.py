# ! /usr/bin/env python
# -*- coding: utf-8 -*-
# ===================================================================
# toolbox.py
#
# @desc: Toolbox for mental Go Fish using commutative elliptic curve
#        masking. Functions for forcing cards to the curve, masking
#        and shuffling the deck with a player's secret scalar and seed,
#        and removing one mask layer with the inverse scalar are
#        implemented, such as the reverse lookup of revealed cards.
# ===================================================================
import logging

from ECCGF.cards import DECK_SIZE
from ECCGF.errors import ArithmeticFailure

logger = logging.getLogger(__name__)

CARD_DOMAIN = b"ECCGF-card"


class Toolbox:
    """Toolbox for Mental Go Fish

    Attributes:
        N (int): number of cards
        curve (Fastecdsa): elliptic curve
        cards_raw (List[ShortPoint]): canonical point of every card
        cards_index (Dict[ShortPoint, int]): reverse map point -> card
    """
    def __init__(self, curve, N=DECK_SIZE):
        """
        Args:
            curve (Fastecdsa): elliptic curve
            N (int): number of cards
        """
        self.N = N
        self.curve = curve
        self.cards_raw = self.init_cards_to_curve()
        self.cards_index = {point: i for i, point in enumerate(self.cards_raw)}
        if len(self.cards_index) != self.N:
            raise ArithmeticFailure("card embedding is not collision free")

    # init --------------------------------------------------------------------
    def init_cards_to_curve(self):
        """Force card indices to curve by hashing, card_list[i] =
        hash_to_curve(i). Nobody knows the discrete logarithm of these
        points, so masked cards can not be related to each other.

        Returns:
            card_list (List[ShortPoint]): forced card values
        """
        return [self.curve.hash_to_curve(CARD_DOMAIN, i)
                for i in range(self.N)]

    # mask --------------------------------------------------------------------
    def check_scalar(self, k):
        if not 0 < k < self.curve.order:
            raise ArithmeticFailure("masking scalar out of range")

    def enc_cards(self, secret_key, cards):
        """Mask curve points, enc[i] = secret_key*cards[i]

        Args:
            secret_key (int): masking scalar of one player
            cards (List[ShortPoint]): points to be masked

        Returns:
            List[ShortPoint]: masked points
        """
        self.check_scalar(secret_key)
        return [self.curve.multiplication(secret_key, card) for card in cards]

    # shuffle -----------------------------------------------------------------
    def shuffle_weights(self, seed, provider):
        """Derive one 64 bit weight per deck position from the seed. The
        field element is split by the provider and the split is checked.

        Args:
            seed (bytes): shuffle seed
            provider (SecretProvider): witness for bit splitting

        Returns:
            List[int]: weights, 0 <= weight < 2^64
        """
        weights = []
        for value in self.curve.rand_gen.get_weights_from_seed(seed, self.N):
            high, low = provider.split_field_bits(value)
            if high * 2 ** 64 + low != value or not 0 <= low < 2 ** 64:
                raise ArithmeticFailure("bit split witness does not verify")
            weights.append(low)
        return weights

    def shuffle_cards(self, cards, seed, provider):
        """Permute cards by sorting them on seed derived weights. The sort
        is done by the provider and checked to be a non-decreasing
        permutation of the input.

        Args:
            cards (List[ShortPoint]): masked cards
            seed (bytes): shuffle seed
            provider (SecretProvider): witness for bit splitting and sort

        Returns:
            List[ShortPoint]: permuted cards
        """
        pairs = list(zip(cards, self.shuffle_weights(seed, provider)))
        sorted_pairs = provider.sorted_deck_witness(list(pairs))

        if sorted(pairs, key=_pair_key) != sorted(sorted_pairs, key=_pair_key):
            raise ArithmeticFailure("sort witness is not a permutation")
        for a, b in zip(sorted_pairs, sorted_pairs[1:]):
            if a[1] > b[1]:
                raise ArithmeticFailure("sort witness is not ordered")

        return [point for point, _ in sorted_pairs]

    def mask_and_shuffle(self, cards, secret_key, seed, provider):
        """Mask every card and, if a seed is given, shuffle the result

        Returns:
            List[ShortPoint]: masked and permuted cards
        """
        masked = self.enc_cards(secret_key, cards)
        if seed is None:
            return masked
        return self.shuffle_cards(masked, seed, provider)

    # dec ---------------------------------------------------------------------
    def dec_partial(self, point, secret_key, provider):
        """Remove the mask layer of secret_key from point,
        dec = secret_key^-1 * point. The inverse comes from the provider
        and is checked against the group order.

        Args:
            point (ShortPoint): masked point
            secret_key (int): masking scalar to be removed
            provider (SecretProvider): witness for the inverse

        Returns:
            ShortPoint: point with one mask layer less
        """
        self.check_scalar(secret_key)
        inverse = provider.field_inverse(secret_key)
        if inverse * secret_key % self.curve.order != 1:
            raise ArithmeticFailure("inverse witness does not verify")
        return self.curve.multiplication(inverse, point)

    def dec_index_raw_card(self, card):
        """Get index of an unmasked point in cards_raw

        Args:
            card (ShortPoint): elliptic curve point representing one card

        Returns:
            int: card index
        """
        try:
            return self.cards_index[card]
        except KeyError:
            logger.error("revealed point %r is no card", card)
            raise ArithmeticFailure("revealed point is not a card") from None


def _pair_key(pair):
    return pair[1], pair[0].x, pair[0].y
