import unittest
from pathlib import Path

from sftpctl.core.errors import ValidationError
from sftpctl.core.models import Mode, ResolvedConfig
from sftpctl.core.strategy import GroupScopedStrategy, UserScopedStrategy, get_strategy


def make_cfg(**overrides):
    values = dict(
        username="john",
        base_dir=Path("/sftp"),
        sshd_config=Path("/etc/ssh/sshd_config"),
        nologin_shell=Path("/usr/sbin/nologin"),
    )
    values.update(overrides)
    return ResolvedConfig(**values)


class TestGroupScopedStrategy(unittest.TestCase):
    def setUp(self):
        self.strategy = GroupScopedStrategy()

    def test_block_layout(self):
        cfg = make_cfg()
        self.assertEqual(self.strategy.marker(cfg), "# SFTP group config (sftpusers)")
        self.assertEqual(self.strategy.body(cfg), [
            "Match Group sftpusers",
            "    ChrootDirectory /sftp/%u",
            "    ForceCommand internal-sftp -d uploads",
            "    PasswordAuthentication yes",
            "    PermitTunnel no",
            "    AllowAgentForwarding no",
            "    AllowTcpForwarding no",
            "    X11Forwarding no",
        ])

    def test_home_ignores_folder(self):
        cfg = make_cfg(folder="data")
        self.assertEqual(self.strategy.home_path(cfg), Path("/sftp/john"))

    def test_block_does_not_depend_on_username(self):
        self.assertEqual(
            self.strategy.body(make_cfg(username="ana")),
            self.strategy.body(make_cfg(username=None)),
        )
        self.assertFalse(self.strategy.removes_block_on_delete)
        self.assertTrue(self.strategy.uses_group)


class TestUserScopedStrategy(unittest.TestCase):
    def setUp(self):
        self.strategy = UserScopedStrategy()

    def test_block_layout(self):
        cfg = make_cfg(mode=Mode.USER, upload_dir="files")
        self.assertEqual(self.strategy.marker(cfg), "# SFTP config for john")
        self.assertEqual(self.strategy.body(cfg), [
            "Match User john",
            "    ForceCommand internal-sftp -d files",
            "    ChrootDirectory /sftp/john",
            "    PasswordAuthentication yes",
            "    PermitTunnel no",
            "    AllowAgentForwarding no",
            "    AllowTcpForwarding no",
            "    X11Forwarding no",
        ])

    def test_folder_sets_home(self):
        cfg = make_cfg(mode=Mode.USER, folder="john_data")
        self.assertEqual(self.strategy.home_path(cfg), Path("/sftp/john_data"))
        self.assertIn("    ChrootDirectory /sftp/john_data", self.strategy.body(cfg))

    def test_requires_username(self):
        with self.assertRaises(ValidationError):
            self.strategy.marker(make_cfg(mode=Mode.USER, username=None))


class TestGetStrategy(unittest.TestCase):
    def test_selects_by_mode(self):
        self.assertIsInstance(get_strategy(Mode.GROUP), GroupScopedStrategy)
        self.assertIsInstance(get_strategy("user"), UserScopedStrategy)


class TestResolvedConfigValidation(unittest.TestCase):
    def test_rejects_bad_usernames(self):
        for bad in ("John", "1john", "jo hn", "a" * 33, "../etc"):
            with self.subTest(username=bad):
                with self.assertRaises(ValidationError):
                    make_cfg(username=bad)

    def test_accepts_posix_names(self):
        for good in ("john", "_svc", "web-01", "machine$"):
            with self.subTest(username=good):
                self.assertEqual(make_cfg(username=good).username, good)

    def test_upload_dir_must_be_single_segment(self):
        with self.assertRaises(ValidationError):
            make_cfg(upload_dir="a/b")

    def test_is_frozen(self):
        cfg = make_cfg()
        with self.assertRaises(Exception):
            cfg.username = "ana"


if __name__ == "__main__":
    unittest.main()
