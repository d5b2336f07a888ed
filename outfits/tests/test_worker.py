import unittest

from redis import exceptions as redis_exceptions

from outfits.queue import CleanupTask, InMemoryCleanupQueue, schedule_cleanup
from outfits.storage import InMemoryStorageClient
from outfits.worker import drain, process_next


class CleanupWorkerTests(unittest.TestCase):
    def setUp(self):
        self.storage = InMemoryStorageClient()
        self.queue = InMemoryCleanupQueue()

    def test_process_next_deletes_object(self):
        self.storage.stored_objects["u1/img.png"] = b"png"
        self.queue.enqueue(CleanupTask(key="u1/img.png"))

        processed = process_next(
            storage=self.storage, queue=self.queue, max_attempts=3, block=False
        )

        self.assertTrue(processed)
        self.assertEqual(self.storage.deleted, ["u1/img.png"])
        self.assertNotIn("u1/img.png", self.storage.stored_objects)

    def test_process_next_no_tasks(self):
        processed = process_next(
            storage=self.storage, queue=self.queue, max_attempts=3, block=False
        )
        self.assertFalse(processed)

    def test_failed_delete_is_retried(self):
        self.storage.fail_deletes = 2
        self.queue.enqueue(CleanupTask(key="u1/img.png"))

        processed = drain(storage=self.storage, queue=self.queue, max_attempts=5)

        self.assertEqual(processed, 3)
        self.assertEqual(self.storage.deleted, ["u1/img.png"])
        self.assertEqual(self.queue.items, [])

    def test_gives_up_after_max_attempts(self):
        self.storage.fail_deletes = 10
        self.queue.enqueue(CleanupTask(key="u1/img.png"))

        processed = drain(storage=self.storage, queue=self.queue, max_attempts=3)

        self.assertEqual(processed, 3)
        self.assertEqual(self.storage.deleted, [])
        self.assertEqual(self.queue.items, [])

    def test_task_json_roundtrip(self):
        task = CleanupTask.from_json(CleanupTask(key="u/k.png", attempts=2).to_json().encode())
        self.assertEqual(task, CleanupTask(key="u/k.png", attempts=2))


class ScheduleCleanupTests(unittest.TestCase):
    def test_enqueues_task(self):
        queue = InMemoryCleanupQueue()
        self.assertTrue(schedule_cleanup(queue, "u1/img.png"))
        self.assertEqual(queue.items, [CleanupTask(key="u1/img.png")])

    def test_queue_failure_is_logged_not_raised(self):
        class Unreachable(InMemoryCleanupQueue):
            def enqueue(self, task):
                raise redis_exceptions.ConnectionError("queue unavailable")

        with self.assertLogs("outfits.queue", level="ERROR") as logs:
            self.assertFalse(schedule_cleanup(Unreachable(), "u1/img.png"))
        self.assertIn("u1/img.png", logs.output[0])

if __name__ == "__main__":
    unittest.main()
