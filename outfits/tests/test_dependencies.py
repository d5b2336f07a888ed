import unittest

from outfits.config import Settings
from outfits.dependencies import build_cleanup_queue, build_storage_client
from outfits.queue import InMemoryCleanupQueue
from outfits.storage import InMemoryStorageClient


def make_settings(**overrides):
    values = {
        "use_in_memory_backends": False,
        "s3_endpoint": None,
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class BackendSelectionTests(unittest.TestCase):
    def test_s3_without_redis_is_rejected(self):
        settings = make_settings(s3_endpoint="http://s3.test")
        with self.assertRaises(ValueError):
            build_cleanup_queue(settings)

    def test_in_memory_flag_keeps_local_queue(self):
        settings = make_settings(use_in_memory_backends=True, s3_endpoint="http://s3.test")
        self.assertIsInstance(build_cleanup_queue(settings), InMemoryCleanupQueue)
        self.assertIsInstance(build_storage_client(settings), InMemoryStorageClient)

    def test_local_storage_uses_local_queue(self):
        settings = make_settings()
        self.assertIsInstance(build_cleanup_queue(settings), InMemoryCleanupQueue)
        self.assertIsInstance(build_storage_client(settings), InMemoryStorageClient)


if __name__ == "__main__":
    unittest.main()
