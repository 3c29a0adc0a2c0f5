import io
import tempfile
import unittest
import unittest.mock
from pathlib import Path

from rich.console import Console

from sftpctl.system import doctor


class TestDoctor(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        self.config = tmp / "sshd_config"
        self.config.write_text("Port 22\n", encoding="utf-8")
        self.shell = tmp / "nologin"
        self.shell.write_text("", encoding="utf-8")
        self.console = Console(file=io.StringIO(), width=120)

    def tearDown(self):
        self._tmp.cleanup()

    def test_check_tool_uses_path(self):
        with unittest.mock.patch("sftpctl.system.doctor.shutil.which", return_value="/usr/bin/getent"):
            self.assertEqual(doctor.check_tool("getent"), (True, "/usr/bin/getent"))

    def test_all_present(self):
        with unittest.mock.patch("sftpctl.system.doctor.check_tool", return_value=(True, "/usr/sbin/x")), \
                unittest.mock.patch("sftpctl.system.doctor.is_root", return_value=False):
            results = doctor.run_doctor(self.console, self.config, self.shell)
        self.assertFalse(results["perm_root"])
        self.assertTrue(results["tool_sshd"])
        self.assertTrue(doctor.doctor_ok(results))

    def test_missing_config(self):
        with unittest.mock.patch("sftpctl.system.doctor.check_tool", return_value=(True, "/usr/sbin/x")), \
                unittest.mock.patch("sftpctl.system.doctor.is_root", return_value=True):
            results = doctor.run_doctor(self.console, self.config.with_name("missing"), self.shell)
        self.assertFalse(results["path_sshd_config"])
        self.assertFalse(doctor.doctor_ok(results))

    def test_missing_tool(self):
        with unittest.mock.patch("sftpctl.system.doctor.check_tool", return_value=(False, None)), \
                unittest.mock.patch("sftpctl.system.doctor.is_root", return_value=True):
            results = doctor.run_doctor(self.console, self.config, self.shell, required_tools=["sshd"])
        self.assertEqual(results["tool_sshd"], False)
        self.assertFalse(doctor.doctor_ok(results))


if __name__ == "__main__":
    unittest.main()
