"""
Tests for the command-line interface
"""

import json
import logging

import pytest

from opsauth.cli import create_parser, main
from opsauth.config import auth_config


@pytest.fixture(autouse=True)
def no_default_config(tmp_path, monkeypatch):
    monkeypatch.setattr(auth_config, "DEFAULT_CONFIG_PATHS", (tmp_path / "absent.json",))


@pytest.fixture(autouse=True)
def restore_package_logger():
    """main() configures the package logger; undo it after each test"""
    package_logger = logging.getLogger("opsauth")
    level, handlers = package_logger.level, list(package_logger.handlers)
    yield
    package_logger.setLevel(level)
    package_logger.handlers[:] = handlers


@pytest.fixture
def key_files(tmp_path, private_key_pem, public_key_pem):
    private_path = tmp_path / "alice.pem"
    public_path = tmp_path / "alice.pub"
    private_path.write_text(private_key_pem)
    public_path.write_text(public_key_pem)
    return private_path, public_path


class TestParser:
    """Test argument parsing"""

    def test_sign_arguments(self):
        args = create_parser().parse_args([
            "sign", "--path", "/nodes", "--user-id", "alice", "--private-key", "k.pem",
        ])
        assert args.command == "sign"
        assert args.method == "GET"
        assert args.protocol_version is None

    def test_rejects_unknown_version(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([
                "sign", "--path", "/", "--user-id", "a", "--private-key", "k", "--protocol-version", "1.2",
            ])

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestCommands:
    """Test sign, verify and canonicalize"""

    def test_sign_then_verify(self, tmp_path, key_files, capsys):
        private_path, public_path = key_files

        assert main([
            "sign", "--method", "POST", "--path", "/nodes", "--body", '{"name":"web1"}',
            "--user-id", "alice", "--private-key", str(private_path), "--protocol-version", "1.3",
        ]) == 0
        headers = json.loads(capsys.readouterr().out)
        assert headers["X-Ops-Sign"] == "algorithm=sha256;version=1.3;"

        headers_path = tmp_path / "headers.json"
        headers_path.write_text(json.dumps(headers))

        assert main([
            "verify", "--method", "POST", "--path", "/nodes", "--body", '{"name":"web1"}',
            "--headers", str(headers_path), "--public-key", str(public_path),
        ]) == 0
        assert "alice" in capsys.readouterr().out

    def test_verify_failure(self, tmp_path, key_files, capsys):
        private_path, public_path = key_files
        main(["sign", "--path", "/nodes", "--user-id", "alice", "--private-key", str(private_path)])
        headers_path = tmp_path / "headers.json"
        headers_path.write_text(capsys.readouterr().out)

        assert main([
            "verify", "--method", "DELETE", "--path", "/nodes",
            "--headers", str(headers_path), "--public-key", str(public_path),
        ]) == 1
        assert "Authentication failed (INVALID_SIGNATURE)" in capsys.readouterr().err

    def test_canonicalize(self, capsys):
        assert main([
            "canonicalize", "--path", "/nodes", "--user-id", "alice",
            "--timestamp", "2024-01-01T00:00:00Z", "--protocol-version", "1.3",
        ]) == 0
        lines = capsys.readouterr().out.strip().split("\n")
        assert lines[0] == "Method:GET"
        assert lines[1] == "Path:/nodes"
        assert lines[-1] == "X-Ops-Server-API-Version:0"

    def test_uses_config_file(self, tmp_path, key_files, capsys):
        private_path, _ = key_files
        config_path = tmp_path / "opsauth.json"
        config_path.write_text('{"protocol_version": "1.0"}')

        assert main([
            "--config", str(config_path),
            "sign", "--path", "/", "--user-id", "alice", "--private-key", str(private_path),
        ]) == 0
        assert json.loads(capsys.readouterr().out)["X-Ops-Sign"] == "algorithm=sha1;version=1.0;"

    def test_missing_key_file(self, tmp_path, capsys):
        assert main([
            "sign", "--path", "/", "--user-id", "alice", "--private-key", str(tmp_path / "nope.pem"),
        ]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_key(self, tmp_path, capsys):
        bad_key = tmp_path / "bad.pem"
        bad_key.write_text("not a key")
        assert main([
            "sign", "--path", "/", "--user-id", "alice", "--private-key", str(bad_key),
        ]) == 1
        assert "MALFORMED_PRIVATE_KEY" in capsys.readouterr().err
