"""
Tests for the srvkit command line.
"""

from io import StringIO

import pytest

from srvkit.cli import build_parser, main

CONF = """
server.http.port = 8080
server.router.modules = Session,Static
server.router.Session.secret = s3cret
debug = false
"""


@pytest.fixture
def conf(conf_dir, write_conf):
    write_conf(CONF)
    return conf_dir


def run(*argv: str) -> tuple[int, str]:
    out = StringIO()
    code = main(list(argv), out=out)
    return code, out.getvalue()


@pytest.mark.unit
class TestConfigCommand:
    def test_get_scalar(self, conf):
        assert run("--conf-dir", str(conf), "config", "get", "server.http.port") == (0, "8080\n")

    def test_get_bool(self, conf):
        assert run("--conf-dir", str(conf), "config", "get", "debug") == (0, "false\n")

    def test_get_list(self, conf):
        code, out = run("--conf-dir", str(conf), "config", "get", "server.router.modules")
        assert code == 0
        assert out == "- Session\n- Static\n"

    def test_get_missing(self, conf, capsys):
        code, out = run("--conf-dir", str(conf), "config", "get", "server.https.port")
        assert code == 1
        assert out == ""
        assert "server.https.port: not set" in capsys.readouterr().err

    def test_dump(self, conf):
        code, out = run("--conf-dir", str(conf), "config", "dump")
        assert code == 0
        assert "http:\n    port: 8080" in out or "http:\n  port: 8080" in out
        assert "secret: s3cret" in out

    def test_conf_file(self, conf, write_conf):
        write_conf("name = other\n", name="other.properties")
        code, out = run(
            "--conf-dir", str(conf), "--conf-file", "other.properties", "config", "get", "name"
        )
        assert (code, out) == (0, "other\n")

    def test_unreadable_config(self, conf_dir, capsys):
        code, _ = run("--conf-dir", str(conf_dir), "config", "dump")
        assert code == 1
        err = capsys.readouterr().err
        assert err.startswith("srvkit: Failed to read configuration file")
        assert "  caused by: " in err


@pytest.mark.unit
class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_serve_watch(self):
        args = build_parser().parse_args(["serve", "--watch"])
        assert args.command == "serve"
        assert args.watch is True

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip()
