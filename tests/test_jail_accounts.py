import tempfile
import unittest
from pathlib import Path

from sftpctl.core.errors import AlreadyExists
from sftpctl.core.models import GroupOutcome, JailDirectory
from sftpctl.system import accounts, jail

from tests.fakes import FakeSystem


class JailTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name) / "sftp"
        self.system = FakeSystem()

    def tearDown(self):
        self._tmp.cleanup()


class TestCreateJail(JailTestCase):
    def test_root_and_child_ownership(self):
        root = self.base / "john"
        jail.create_jail(self.system, JailDirectory(root, "uploads", "john"))

        self.assertTrue((root / "uploads").is_dir())
        self.assertEqual(self.system.owners[root], ("root", "root"))
        self.assertEqual(self.system.modes[root], 0o755)
        self.assertEqual(self.system.owners[root / "uploads"], ("john", "john"))
        self.assertEqual(self.system.modes[root / "uploads"], 0o755)

    def test_self_heals_existing_root(self):
        root = self.base / "john"
        root.mkdir(parents=True)
        self.system.owners[root] = ("john", "john")
        self.system.modes[root] = 0o777

        jail.create_jail(self.system, JailDirectory(root, "uploads", "john"))
        self.assertEqual(self.system.owners[root], ("root", "root"))
        self.assertEqual(self.system.modes[root], 0o755)

    def test_ensure_root_owned_dir(self):
        jail.ensure_root_owned_dir(self.system, self.base)
        self.assertTrue(self.base.is_dir())
        self.assertEqual(self.system.owners[self.base], ("root", "root"))
        self.assertEqual(self.system.modes[self.base], 0o755)


class TestDestroyJail(JailTestCase):
    def test_removes_tree(self):
        root = self.base / "john"
        (root / "uploads").mkdir(parents=True)
        (root / "uploads" / "file.txt").write_text("x")
        self.assertTrue(jail.destroy_jail(self.system, root))
        self.assertFalse(root.exists())

    def test_missing_root_is_noop(self):
        self.assertFalse(jail.destroy_jail(self.system, self.base / "ghost"))
        self.assertEqual(self.system.calls, [])


class TestAccounts(unittest.TestCase):
    def setUp(self):
        self.system = FakeSystem()

    def test_create_account_rejects_existing(self):
        accounts.create_account(self.system, "john", Path("/sftp/john"), Path("/usr/sbin/nologin"))
        with self.assertRaises(AlreadyExists):
            accounts.create_account(self.system, "john", Path("/sftp/john"), Path("/usr/sbin/nologin"))

    def test_delete_account_tolerates_absence(self):
        self.assertFalse(accounts.delete_account(self.system, "ghost"))
        self.assertEqual(self.system.calls, [])

    def test_ensure_group_is_idempotent(self):
        self.assertEqual(accounts.ensure_group(self.system, "sftpusers"), GroupOutcome.CREATED)
        self.assertEqual(accounts.ensure_group(self.system, "sftpusers"), GroupOutcome.EXISTS)
        self.assertEqual(self.system.calls.count("create_group sftpusers"), 1)

    def test_add_member_is_idempotent(self):
        accounts.ensure_group(self.system, "sftpusers")
        accounts.add_member(self.system, "john", "sftpusers")
        accounts.add_member(self.system, "john", "sftpusers")
        self.assertEqual(self.system.groups["sftpusers"], {"john"})
        self.assertEqual(self.system.calls.count("add_member john sftpusers"), 1)


if __name__ == "__main__":
    unittest.main()
