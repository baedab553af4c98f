"""Unit tests for app.core.security: bcrypt hashing, password policy, JWT access/refresh tokens."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.errors import InvalidTokenError, TokenExpiredError
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    password_meets_policy,
    verify_password,
)
from tests.support import STRONG_PASSWORD, make_settings


class TestPasswordHashing(unittest.TestCase):
    def test_verify_accepts_original_password(self) -> None:
        hashed = hash_password(STRONG_PASSWORD)
        self.assertNotEqual(hashed, STRONG_PASSWORD)
        self.assertTrue(hashed.startswith("$2b$12$"))
        self.assertTrue(verify_password(STRONG_PASSWORD, hashed))

    def test_verify_rejects_mutated_password(self) -> None:
        hashed = hash_password(STRONG_PASSWORD)
        self.assertFalse(verify_password(STRONG_PASSWORD + "x", hashed))
        self.assertFalse(verify_password(STRONG_PASSWORD.lower(), hashed))

    def test_verify_rejects_malformed_hash(self) -> None:
        self.assertFalse(verify_password(STRONG_PASSWORD, "not-a-bcrypt-hash"))

    def test_mutating_last_character_of_longest_password_fails(self) -> None:
        password = "Aa1!" + "b" * 68
        self.assertEqual(len(password.encode("utf-8")), 72)
        self.assertTrue(password_meets_policy(password))
        hashed = hash_password(password)
        self.assertTrue(verify_password(password, hashed))
        self.assertFalse(verify_password(password[:-1] + "c", hashed))

    def test_bytes_past_limit_never_verify(self) -> None:
        password = "Aa1!" + "b" * 68
        hashed = hash_password(password)
        self.assertFalse(verify_password(password + "c", hashed))

    def test_hash_refuses_overlong_password(self) -> None:
        with self.assertRaises(ValueError):
            hash_password("Aa1!" + "b" * 69)

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(hash_password(STRONG_PASSWORD), hash_password(STRONG_PASSWORD))


class TestPasswordPolicy(unittest.TestCase):
    def test_accepts_password_with_every_clause(self) -> None:
        self.assertTrue(password_meets_policy("Abcdef1!"))

    def test_rejects_each_missing_clause(self) -> None:
        for password in (
            "Abc1!",  # too short
            "abcdef1!",  # no uppercase
            "ABCDEF1!",  # no lowercase
            "Abcdefg!",  # no digit
            "Abcdefg1",  # no special
            "Abcdef1#",  # special outside the allowed set
        ):
            with self.subTest(password=password):
                self.assertFalse(password_meets_policy(password))

    def test_rejects_password_over_72_bytes(self) -> None:
        self.assertTrue(password_meets_policy("Aa1!" + "a" * 68))
        self.assertFalse(password_meets_policy("Aa1!" + "a" * 69))

    def test_limit_counts_utf8_bytes_not_characters(self) -> None:
        # 39 characters, 74 bytes
        self.assertFalse(password_meets_policy("Aa1!" + "\u00e9" * 35))
        self.assertTrue(password_meets_policy("Aa1!" + "\u00e9" * 34))


class TestTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()

    def test_access_token_round_trip_claims(self) -> None:
        token = create_access_token("42", "a@example.com", "admin", settings=self.settings)
        claims = decode_token(token, "access", settings=self.settings)
        self.assertEqual(claims["sub"], "42")
        self.assertEqual(claims["email"], "a@example.com")
        self.assertEqual(claims["role"], "admin")
        self.assertEqual(claims["exp"] - claims["iat"], 15 * 60)

    def test_refresh_token_carries_only_subject(self) -> None:
        token = create_refresh_token("42", settings=self.settings)
        claims = decode_token(token, "refresh", settings=self.settings)
        self.assertEqual(claims["sub"], "42")
        self.assertNotIn("email", claims)
        self.assertEqual(claims["exp"] - claims["iat"], 7 * 24 * 60 * 60)

    def test_expired_access_token(self) -> None:
        issued = datetime.now(UTC) - timedelta(minutes=16)
        token = create_access_token(
            "42", "a@example.com", "user", settings=self.settings, issued_at=issued
        )
        with self.assertRaises(TokenExpiredError) as ctx:
            decode_token(token, "access", settings=self.settings)
        self.assertEqual(ctx.exception.code, "TOKEN_EXPIRED")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_refresh_token_not_accepted_as_access(self) -> None:
        token = create_refresh_token("42", settings=self.settings)
        with self.assertRaises(InvalidTokenError):
            decode_token(token, "access", settings=self.settings)

    def test_access_token_not_accepted_as_refresh(self) -> None:
        token = create_access_token("42", "a@example.com", "user", settings=self.settings)
        with self.assertRaises(InvalidTokenError):
            decode_token(token, "refresh", settings=self.settings)

    def test_tampered_token_is_invalid(self) -> None:
        token = create_access_token("42", "a@example.com", "user", settings=self.settings)
        forged = jwt.encode(
            jwt.decode(token, options={"verify_signature": False}) | {"role": "admin"},
            "some-other-secret",
            algorithm="HS256",
        )
        with self.assertRaises(InvalidTokenError) as ctx:
            decode_token(forged, "access", settings=self.settings)
        self.assertEqual(ctx.exception.code, "INVALID_TOKEN")

    def test_garbage_token_is_invalid(self) -> None:
        with self.assertRaises(InvalidTokenError):
            decode_token("not.a.jwt", "access", settings=self.settings)


if __name__ == "__main__":
    unittest.main()
