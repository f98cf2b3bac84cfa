import unittest

import gdriveupload


class TestPublicApi(unittest.TestCase):
    def test_top_level_exports_exist(self) -> None:
        self.assertTrue(hasattr(gdriveupload, "UploadManager"))
        self.assertTrue(hasattr(gdriveupload, "DriveClient"))
        self.assertTrue(hasattr(gdriveupload, "CredentialManager"))
        self.assertTrue(hasattr(gdriveupload, "ConfigStore"))

        self.assertTrue(hasattr(gdriveupload, "DirectoryMirrorResolver"))
        self.assertTrue(hasattr(gdriveupload, "UploadScheduler"))
        self.assertTrue(hasattr(gdriveupload, "ConflictRetryPolicy"))
        self.assertTrue(hasattr(gdriveupload, "RunAggregator"))

        self.assertTrue(hasattr(gdriveupload, "GDriveUploadError"))
        self.assertTrue(hasattr(gdriveupload, "MirrorError"))

    def test___all___is_defined(self) -> None:
        self.assertTrue(hasattr(gdriveupload, "__all__"))
        self.assertIn("UploadManager", gdriveupload.__all__)
        self.assertIn("GDriveUploadError", gdriveupload.__all__)
        for name in gdriveupload.__all__:
            self.assertTrue(hasattr(gdriveupload, name), name)


if __name__ == "__main__":
    unittest.main()
