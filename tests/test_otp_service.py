import unittest
from datetime import timedelta
from unittest.mock import patch

from helpers import DatabaseTestCase

from etce_auth.db import SessionLocal
from etce_auth.models import VerificationChallenge, utcnow
from etce_auth.services import otp_service
from etce_auth.services.otp_service import (
    consume_challenge,
    generate_otp,
    hash_otp,
    issue_challenge,
    purge_expired_challenges,
)


class TestGenerateOtp(unittest.TestCase):

    def test_six_digits_in_range(self):
        for _ in range(200):
            otp = generate_otp()
            self.assertEqual(len(otp), 6)
            self.assertTrue(100000 <= int(otp) <= 999999)

    def test_range_edges(self):
        with patch("etce_auth.services.otp_service.secrets.randbelow", return_value=0):
            self.assertEqual(generate_otp(), "100000")
        with patch("etce_auth.services.otp_service.secrets.randbelow", return_value=899999):
            self.assertEqual(generate_otp(), "999999")

    def test_hash_is_not_the_code(self):
        self.assertNotEqual(hash_otp("123456"), "123456")
        self.assertEqual(len(hash_otp("123456")), 64)


class TestChallenges(DatabaseTestCase):

    def _issue(self, otp="123456", now=None, role="student"):
        issue_challenge(self.db, "a@x.com", role, otp, now=now)
        self.db.commit()

    def test_consume_once(self):
        self._issue()
        self.assertTrue(consume_challenge(self.db, "a@x.com", "student", "123456"))
        self.db.commit()
        self.assertFalse(consume_challenge(self.db, "a@x.com", "student", "123456"))
        self.assertEqual(self.db.query(VerificationChallenge).count(), 0)

    def test_challenge_deleted_after_read_is_not_consumed(self):
        self._issue()
        compare_digest = otp_service.hmac.compare_digest

        def deleted_by_other_session(a, b):
            other = SessionLocal()
            try:
                other.query(VerificationChallenge).delete()
                other.commit()
            finally:
                other.close()
            return compare_digest(a, b)

        with patch.object(otp_service.hmac, "compare_digest", side_effect=deleted_by_other_session):
            self.assertFalse(consume_challenge(self.db, "a@x.com", "student", "123456"))

    def test_wrong_code_keeps_challenge(self):
        self._issue()
        self.assertFalse(consume_challenge(self.db, "a@x.com", "student", "654321"))
        self.assertEqual(self.db.query(VerificationChallenge).count(), 1)

    def test_expiry_is_strict(self):
        now = utcnow()
        self._issue(now=now)
        expires = now + timedelta(minutes=5)
        self.assertFalse(consume_challenge(self.db, "a@x.com", "student", "123456", now=expires))
        self.assertTrue(
            consume_challenge(self.db, "a@x.com", "student", "123456", now=expires - timedelta(seconds=1))
        )

    def test_role_scoped(self):
        self._issue(role="faculty")
        self.assertFalse(consume_challenge(self.db, "a@x.com", "student", "123456"))
        self.assertTrue(consume_challenge(self.db, "a@x.com", "faculty", "123456"))

    def test_purge_expired(self):
        issue_challenge(self.db, "old@x.com", "student", "111111", now=utcnow() - timedelta(minutes=10))
        issue_challenge(self.db, "new@x.com", "student", "222222")
        self.db.commit()

        self.assertEqual(purge_expired_challenges(self.db), 1)
        remaining = [c.email for c in self.db.query(VerificationChallenge).all()]
        self.assertEqual(remaining, ["new@x.com"])


if __name__ == "__main__":
    unittest.main()
