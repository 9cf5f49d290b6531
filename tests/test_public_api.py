import unittest

import gdrivefs


class TestPublicApi(unittest.TestCase):
    def test_top_level_exports_exist(self) -> None:
        self.assertTrue(hasattr(gdrivefs, "GoogleDriveAdapter"))
        self.assertTrue(hasattr(gdrivefs, "AdapterOptions"))
        self.assertTrue(hasattr(gdrivefs, "AuthInfo"))
        self.assertTrue(hasattr(gdrivefs, "OAuthClient"))

        self.assertTrue(hasattr(gdrivefs, "Metadata"))
        self.assertTrue(hasattr(gdrivefs, "ListResult"))
        self.assertTrue(hasattr(gdrivefs, "RemoteObject"))

        self.assertTrue(hasattr(gdrivefs, "GDriveFsError"))
        self.assertTrue(hasattr(gdrivefs, "TooManyRedirectsError"))

    def test___all___is_defined(self) -> None:
        self.assertTrue(hasattr(gdrivefs, "__all__"))
        self.assertIn("GoogleDriveAdapter", gdrivefs.__all__)
        self.assertIn("GDriveFsError", gdrivefs.__all__)
        for name in gdrivefs.__all__:
            self.assertTrue(hasattr(gdrivefs, name), name)


if __name__ == "__main__":
    unittest.main()
