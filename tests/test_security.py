import unittest

from etce_auth.security import hash_password, verify_password


class TestPasswordHashing(unittest.TestCase):

    def test_roundtrip_and_salting(self):
        first = hash_password("pw1")
        second = hash_password("pw1")
        self.assertNotEqual(first, "pw1")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("pw1", first))
        self.assertFalse(verify_password("pw2", first))

    def test_empty_or_garbage_hash(self):
        self.assertFalse(verify_password("pw1", ""))
        self.assertFalse(verify_password("pw1", "plaintext"))

    def test_long_passwords_truncated_at_72_bytes(self):
        long = "x" * 100
        self.assertTrue(verify_password("x" * 72, hash_password(long)))


if __name__ == "__main__":
    unittest.main()
