"""Tests for the keybox command-line entry point."""

import json

import pytest

from keybox.__main__ import build_parser, main


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("KEYBOX_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("KEYBOX_MASTER_PASSWORD", "cli-master-pw")
    monkeypatch.chdir(tmp_path)
    return tmp_path / "home"


def _added_id(capsys):
    out = capsys.readouterr().out.strip()
    verb, record_id = out.split()
    assert verb == "added"
    return record_id


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rm_flags(self):
        args = build_parser().parse_args(["rm", "ab", "cd", "--all"])
        assert args.ids == ["ab", "cd"]
        assert args.all is True


class TestCommands:
    def test_add_list_find(self, env, capsys):
        assert main(["add", "--category", "mail", "--account", "alice", "--password", "pw1"]) == 0
        record_id = _added_id(capsys)

        assert main(["list"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["ID", "CATEGORY", "ACCOUNT", "PASSWORD", "UPDATED_AT"]
        assert lines[1].split()[:4] == [record_id, "mail", "alice", "pw1"]

        assert main(["find", "ALI"]) == 0
        assert record_id in capsys.readouterr().out

        blob = json.loads((env / "box.json").read_text())
        assert [item["id"] for item in blob] == [record_id]

    def test_update_and_remove(self, env, capsys):
        main(["add", "--category", "mail", "--account", "alice", "--password", "pw1"])
        record_id = _added_id(capsys)

        assert main(["add", "--id", record_id, "--password", "pw2"]) == 0
        assert capsys.readouterr().out.strip() == f"updated {record_id}"

        assert main(["rm", record_id[:6]]) == 0
        assert capsys.readouterr().out.strip() == f"removed {record_id}"

    def test_rm_account_and_clear(self, env, capsys):
        main(["add", "--category", "mail", "--account", "alice", "--password", "a"])
        main(["add", "--category", "mail", "--account", "bob", "--password", "b"])
        capsys.readouterr()

        assert main(["rm-account", "mail", "bob"]) == 0
        assert capsys.readouterr().out.startswith("removed ")

        assert main(["clear"]) == 0
        assert capsys.readouterr().out.strip() == "removed 1 password(s)"

    def test_errors_exit_nonzero(self, env, capsys):
        assert main(["rm", "nothing"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_short_master_password(self, env, monkeypatch, capsys):
        monkeypatch.setenv("KEYBOX_MASTER_PASSWORD", "12345")
        assert main(["list"]) == 1
        assert "too short" in capsys.readouterr().err

    def test_bad_backend(self, env, monkeypatch, capsys):
        monkeypatch.setenv("KEYBOX_BACKEND", "cloud")
        assert main(["list"]) == 2
        assert "KEYBOX_BACKEND" in capsys.readouterr().err

    def test_wrong_master_password_still_lists(self, env, monkeypatch, capsys):
        main(["add", "--category", "mail", "--account", "alice@example.com",
              "--password", "a-fairly-long-password"])
        record_id = _added_id(capsys)

        monkeypatch.setenv("KEYBOX_MASTER_PASSWORD", "not-the-right-one")
        assert main(["list"]) == 0
        captured = capsys.readouterr()
        assert "Traceback" not in captured.err
        lines = captured.out.splitlines()
        assert lines[1].split()[0] == record_id
        assert "alice@example.com" not in captured.out

        assert main(["find", ""]) == 0
        assert record_id in capsys.readouterr().out
