"""Tests for the CLI, configuration and logging helpers."""

import json
import logging
from datetime import datetime

import httpx
import pytest

import config
import main
import utils
from clients import CloudLinkClient
from conftest import Recorder


@pytest.fixture
def cli(monkeypatch):
    """Run main() against a recording transport; returns the recorder."""
    recorder = Recorder(body='{"status": "ok"}')

    def make_client(cfg, log=None):
        return CloudLinkClient(cfg, log=log, transport=httpx.MockTransport(recorder))

    monkeypatch.setattr(main, "CloudLinkClient", make_client)
    monkeypatch.setattr(main, "setup_logging", lambda level: None)
    return recorder


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args([])


def test_parser_rejects_invalid_json():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["place-order", "{oops"])


def test_place_order_command(cli, capsys):
    main.main(["--host", "https://h.test", "place-order", '{"recipeId": 10001}'])

    assert json.loads(capsys.readouterr().out) == {"status": "ok"}
    assert str(cli.last.url) == "https://h.test/placeOrder"
    assert json.loads(cli.form()["order"]) == {"recipeId": 10001}


def test_feedback_command(cli, capsys):
    main.main(["--host", "https://h.test", "feedback", "7", "no", "burnt"])

    assert json.loads(cli.form()["feedback"]) == {
        "productId": "7",
        "like": False,
        "feedback": "burnt",
    }


def test_orders_filtered_single_status(cli):
    main.main(["--host", "https://h.test", "orders-filtered", "pending"])
    assert json.loads(cli.form()["filter"]) == {"status": "pending"}


def test_online_command_prints_boolean(cli, capsys):
    cli.body = "Hello World!"

    main.main(["--host", "https://h.test", "online"])

    assert capsys.readouterr().out.strip() == "true"


def test_failure_exits_non_zero(cli, capsys):
    cli.body = "<html>oops</html>"

    with pytest.raises(SystemExit) as exc_info:
        main.main(["--host", "https://h.test", "recipes"])

    assert exc_info.value.code == 1
    assert "could not parse body json" in json.loads(capsys.readouterr().err)["error"]


def test_invalid_timeout_exits_with_error_json(cli, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(["--host", "https://h.test", "--timeout", "0", "recipes"])

    assert exc_info.value.code == 1
    assert "timeout" in json.loads(capsys.readouterr().err)["error"]
    assert cli.requests == []


def test_get_client_config_overrides(monkeypatch):
    monkeypatch.setattr(config, "CLOUDLINK_HOST", "http://env.host")
    monkeypatch.setattr(config, "CLOUDLINK_USER", "env-user")

    cfg = config.get_client_config(username="cli-user", password=None, timeout=2.5)

    assert cfg.host == "http://env.host"
    assert cfg.username == "cli-user"
    assert cfg.timeout == 2.5
    assert cfg.verify_tls is False


@pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("no", False), (None, False)])
def test_env_flag(monkeypatch, value, expected):
    if value is None:
        monkeypatch.delenv("CLOUDLINK_TEST_FLAG", raising=False)
    else:
        monkeypatch.setenv("CLOUDLINK_TEST_FLAG", value)
    assert config._env_flag("CLOUDLINK_TEST_FLAG") is expected


def test_format_utc():
    assert utils.format_utc(datetime(2016, 5, 4, 3, 2, 1, 999)) == "2016-05-04T03:02:01+00:00"


def test_setup_logging_is_idempotent(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    log_file = tmp_path / "cloudlink.log"

    try:
        utils.setup_logging(logging.DEBUG, log_file=str(log_file))
        utils.setup_logging(logging.DEBUG, log_file=str(log_file))

        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
