"""
Secret derivation test suite.

Covers the bcrypt base64 alphabet, permanent salts, bcrypt-sha256 and
the preimage slice rule that published conditions depend on.
"""

import base64
import hashlib
import unittest
from unittest import mock

import bcrypt

from cryptocond import (
    DataCompletenessError,
    InternalError,
    InvalidInputError,
    bcrypt_b64encode,
    bcrypt_sha256,
    build_condition,
    condition_from_preimage,
    condition_to_hex,
    derive_secret,
    permanent_salt,
)
from cryptocond import derivation
from cryptocond.derivation import BCRYPT_ALPHABET, BcryptSha256Hash, check_salt, splice_salt
from cryptocond.hashing import hmac_sha256_b64


STD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
TO_BCRYPT = str.maketrans(STD_ALPHABET, BCRYPT_ALPHABET)


class TestBcryptBase64(unittest.TestCase):

    def test_known_vectors(self):
        self.assertEqual(bcrypt_b64encode(b""), "")
        self.assertEqual(bcrypt_b64encode(bytes(16)), "." * 22)
        self.assertEqual(bcrypt_b64encode(b"\xff" * 16), "9" * 21 + "u")
        self.assertEqual(bcrypt_b64encode(b"\xff"), "9u")
        self.assertEqual(bcrypt_b64encode(b"\xff\xff"), "996")

    def test_matches_standard_base64_in_bcrypt_alphabet(self):
        for data in (b"a", b"ab", b"abc", bytes(range(16)), hashlib.sha256(b"x").digest()[:16]):
            with self.subTest(data=data):
                expected = base64.b64encode(data).decode("ascii").rstrip("=").translate(TO_BCRYPT)
                self.assertEqual(bcrypt_b64encode(data), expected)

    def test_splice_keeps_header(self):
        self.assertEqual(splice_salt("$2b$12$" + "x" * 22, "y" * 30), "$2b$12$" + "y" * 22)


class TestPermanentSalt(unittest.TestCase):

    def test_salt_body_from_password_and_pepper(self):
        salt = permanent_salt("pw", "rAcc", 10)

        body = bcrypt_b64encode(hashlib.sha256(b"pwrAcc").digest()[:16])[:22]
        self.assertEqual(salt, "$2b$10$" + body)

    def test_deterministic(self):
        self.assertEqual(permanent_salt("pw", "rAcc", 10), permanent_salt("pw", "rAcc", 10))

    def test_pepper_is_trimmed(self):
        self.assertEqual(permanent_salt("pw", "  rAcc \n", 10), permanent_salt("pw", "rAcc", 10))
        self.assertEqual(permanent_salt("pw", None, 10), permanent_salt("pw", "", 10))

    def test_pepper_personalizes(self):
        self.assertNotEqual(permanent_salt("pw", "rAlice", 10), permanent_salt("pw", "rBob", 10))

    def test_cost_factor_in_header(self):
        self.assertTrue(permanent_salt("pw", "rAcc", 11).startswith("$2b$11$"))

    def test_generated_salt_passes_check(self):
        check_salt(bcrypt.gensalt(4).decode("ascii"))

    def test_corrupted_template_rejected(self):
        with mock.patch.object(derivation.bcrypt, "gensalt", return_value=b"$2b$10$short"):
            with self.assertRaises(InternalError):
                permanent_salt("pw", "rAcc", 10)

    def test_wrong_alphabet_rejected(self):
        with mock.patch.object(derivation, "bcrypt_b64encode", return_value="*" * 22):
            with self.assertRaises(InternalError):
                permanent_salt("pw", "rAcc", 10)

    def test_non_canonical_trailing_bits_rejected(self):
        with self.assertRaises(InternalError):
            check_salt("$2b$04$" + "." * 21 + "B")


class TestBcryptSha256(unittest.TestCase):

    def test_existing_salt_reproduces_hash(self):
        first = bcrypt_sha256("pw", rounds=10)
        second = bcrypt_sha256("pw", existing_salt=first.salt)

        self.assertTrue(first.salt_random)
        self.assertFalse(second.salt_random)
        self.assertEqual(second.fullhash, first.fullhash)
        self.assertEqual(second.rounds, 10)

    def test_hash_layout(self):
        result = bcrypt_sha256("pw", existing_salt=bcrypt.gensalt(4).decode("ascii"))

        self.assertEqual(len(result.fullhash), 60)
        self.assertTrue(result.fullhash.startswith(result.salt))
        self.assertEqual(result.hash, result.fullhash[29:])

    def test_password_is_prehashed(self):
        result = bcrypt_sha256("pw", existing_salt=bcrypt.gensalt(4).decode("ascii"))

        prehash = hmac_sha256_b64("pw", result.salt).encode("ascii")
        self.assertTrue(bcrypt.checkpw(prehash, result.fullhash.encode("ascii")))

    def test_low_rounds_raised_to_minimum(self):
        result = bcrypt_sha256("pw", rounds=4)

        self.assertEqual(result.rounds, 10)
        self.assertTrue(result.salt.startswith("$2b$10$"))

    def test_existing_salt_keeps_its_cost(self):
        result = bcrypt_sha256("pw", rounds=12, existing_salt=bcrypt.gensalt(4).decode("ascii"))

        self.assertEqual(result.rounds, 4)

    def test_rounds_above_maximum(self):
        with self.assertRaises(InvalidInputError):
            bcrypt_sha256("pw", rounds=32)

    def test_malformed_existing_salt(self):
        with self.assertRaises(InvalidInputError):
            bcrypt_sha256("pw", existing_salt="$2b$10$short")


class TestDeriveSecret(unittest.TestCase):

    def test_random_secret(self):
        first = derive_secret()
        second = derive_secret()

        self.assertEqual(len(first.preimage), 32)
        self.assertTrue(first.is_random)
        self.assertIsNone(first.salt)
        self.assertIsNone(first.rounds)
        self.assertNotEqual(first.preimage, second.preimage)

    def test_preimage_is_hash_tail(self):
        result = derive_secret("pw", pepper="rAcc")

        fullhash = bcrypt_sha256("pw", existing_salt=result.salt).fullhash
        self.assertEqual(result.preimage, fullhash[-32:].encode("ascii"))
        self.assertTrue(set(result.preimage.decode("ascii")) <= set(BCRYPT_ALPHABET))
        self.assertFalse(result.is_random)
        self.assertFalse(result.is_salt_random)
        self.assertEqual(result.rounds, 10)

    def test_permanent_salt_is_deterministic(self):
        self.assertEqual(
            derive_secret("pw", pepper="rAcc", rounds=10).preimage,
            derive_secret("pw", pepper="rAcc", rounds=10).preimage,
        )

    def test_pepper_personalizes(self):
        self.assertNotEqual(
            derive_secret("pw", pepper="rAlice").preimage,
            derive_secret("pw", pepper="rBob").preimage,
        )

    def test_random_salt(self):
        first = derive_secret("pw", use_permanent_salt=False)
        second = derive_secret("pw", use_permanent_salt=False)

        self.assertTrue(first.is_salt_random)
        self.assertNotEqual(first.salt, second.salt)
        self.assertEqual(derive_secret("pw", existing_salt=first.salt).preimage, first.preimage)

    def test_blank_password(self):
        for password in ("", "   "):
            with self.subTest(password=password):
                with self.assertRaises(DataCompletenessError):
                    derive_secret(password)

    def test_short_hash_rejected(self):
        short = BcryptSha256Hash(fullhash="$2b$10$short", salt="$2b$10$", salt_random=False, rounds=10)
        with mock.patch.object(derivation, "bcrypt_sha256", return_value=short):
            with self.assertRaises(InternalError):
                derive_secret("pw")

    def test_secrets_not_in_repr(self):
        result = derive_secret("pw", pepper="rAcc")

        self.assertNotIn(repr(result.preimage), repr(result))
        self.assertNotIn(result.salt, repr(result))



class TestKnownAnswers(unittest.TestCase):
    """Published values that must not drift between releases."""

    SALT = "$2b$10$XzJ0u63/9YZxG3IbPpKWCu"
    PREHASH = "6ZGYw/7IiCsr0XolvZTEThTyAOptm+Q0sZtncPB0f28="

    def test_permanent_salt(self):
        self.assertEqual(permanent_salt("pw", "rAcc", 10), self.SALT)

    def test_permanent_salt_unicode_and_padded_pepper(self):
        self.assertEqual(
            permanent_salt("p\u00e4ssw\u00f6rd \u2713", " rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh\n", 10),
            "$2b$10$3zQzryPAheotOmlnM8Jt5.",
        )

    def test_prehash(self):
        self.assertEqual(hmac_sha256_b64("pw", self.SALT), self.PREHASH)

    def test_condition(self):
        expected = bcrypt.hashpw(self.PREHASH.encode(), self.SALT.encode())[-32:]

        self.assertEqual(derive_secret("pw", pepper="rAcc", rounds=10).preimage, expected)
        self.assertEqual(
            build_condition(password="pw", pepper="rAcc", rounds=10).condition_hex,
            condition_to_hex(condition_from_preimage(expected)),
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
