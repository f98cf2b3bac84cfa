import unittest

from gdriveupload.auth.credential_record import CredentialRecord


class TestCredentialRecord(unittest.TestCase):
    def test_from_config(self) -> None:
        record = CredentialRecord.from_config(
            {
                "CLIENT_ID": "cid",
                "CLIENT_SECRET": "sec",
                "REFRESH_TOKEN": "",
                "ACCESS_TOKEN": "at",
                "ACCESS_TOKEN_EXPIRY": "1700000000",
            }
        )
        self.assertTrue(record.has_client_identity)
        self.assertIsNone(record.refresh_token)
        self.assertEqual(record.access_token_expiry, 1_700_000_000)

    def test_garbage_expiry_is_ignored(self) -> None:
        record = CredentialRecord.from_config({"ACCESS_TOKEN_EXPIRY": "soon"})
        self.assertIsNone(record.access_token_expiry)
        self.assertFalse(record.has_client_identity)

    def test_access_token_valid(self) -> None:
        record = CredentialRecord(access_token="at", access_token_expiry=100)
        self.assertTrue(record.access_token_valid(99))
        self.assertFalse(record.access_token_valid(100))
        self.assertFalse(record.access_token_valid(50, margin=60))
        self.assertFalse(CredentialRecord(access_token_expiry=100).access_token_valid(0))

    def test_with_tokens_returns_new_record(self) -> None:
        record = CredentialRecord(client_id="cid", refresh_token="rt")
        rotated = record.with_tokens(access_token="at", access_token_expiry=5)
        self.assertIsNone(record.access_token)
        self.assertEqual(rotated.access_token, "at")
        self.assertEqual(rotated.refresh_token, "rt")

    def test_repr_hides_secrets(self) -> None:
        record = CredentialRecord(
            client_id="cid", client_secret="topsecret", refresh_token="rt-secret", access_token="at-secret"
        )
        text = repr(record)
        self.assertNotIn("topsecret", text)
        self.assertNotIn("rt-secret", text)
        self.assertNotIn("at-secret", text)


if __name__ == "__main__":
    unittest.main()
