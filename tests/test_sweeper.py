"""Tests for the orphaned staging-file sweep."""

import os
import shutil
import tempfile
import time
import unittest

from lazylog.sweeper import list_staging_files, sweep_stale_staging


class TestSweep(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.now = time.time()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _touch(self, name, age_seconds=0.0):
        path = os.path.join(self.tmpdir, name)
        with open(path, "w") as f:
            f.write("{}")
        mtime = self.now - age_seconds
        os.utime(path, (mtime, mtime))
        return path

    def test_lists_only_staging_files(self):
        self._touch("lazylog_b.json")
        self._touch("lazylog_a.json")
        self._touch("other.json")
        self._touch("lazylog_c.txt")
        self.assertEqual(list_staging_files(self.tmpdir), ["lazylog_a.json", "lazylog_b.json"])

    def test_deletes_only_stale(self):
        self._touch("lazylog_old.json", age_seconds=7200)
        self._touch("lazylog_new.json", age_seconds=10)
        self._touch("unrelated.json", age_seconds=7200)

        deleted = sweep_stale_staging(self.tmpdir, 3600, now=self.now)

        self.assertEqual(deleted, ["lazylog_old.json"])
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir, "lazylog_new.json")))
        self.assertTrue(os.path.exists(os.path.join(self.tmpdir, "unrelated.json")))

    def test_missing_directory(self):
        self.assertEqual(sweep_stale_staging(os.path.join(self.tmpdir, "nope"), 10), [])

    def test_nothing_to_sweep(self):
        self._touch("lazylog_new.json")
        self.assertEqual(sweep_stale_staging(self.tmpdir, 60, now=self.now), [])


if __name__ == "__main__":
    unittest.main()
