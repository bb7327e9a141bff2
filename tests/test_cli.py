"""Tests for the command line entry point (simulator mode)."""

import json
import logging

import pytest

from ledcube_sync.__main__ import main, resolve_transport_factory
from ledcube_sync.config.models import AppConfig


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"serial": {"seconds_per_byte": 0.1}}))
    return str(path)


def test_probe(config_path, capsys):
    assert main(["--config", config_path, "--simulator", "probe"]) == 0
    assert "Cube present" in capsys.readouterr().out


def test_download_prints_json(config_path, capsys):
    assert main(["--config", config_path, "--simulator", "download"]) == 0
    assert json.loads(capsys.readouterr().out) == {"animations": []}


def test_download_to_file(config_path, tmp_path):
    output = tmp_path / "cube.json"
    assert main(["--config", config_path, "--simulator", "download", "-o", str(output)]) == 0
    assert json.loads(output.read_text()) == {"animations": []}


def test_upload(config_path, tmp_path, sample_set):
    source = tmp_path / "set.json"
    source.write_text(sample_set.model_dump_json())
    assert main(["--config", config_path, "--simulator", "upload", "-i", str(source)]) == 0


def test_upload_rejects_invalid_file(config_path, tmp_path):
    source = tmp_path / "set.json"
    source.write_text(json.dumps({"animations": [{"frames": [{"duration": 1, "pixels": [1, 2]}]}]}))
    assert main(["--config", config_path, "--simulator", "upload", "-i", str(source)]) == 1


def test_clear(config_path):
    assert main(["--config", config_path, "--simulator", "clear"]) == 0


def test_bad_config(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("[")
    assert main(["--config", str(path), "--simulator", "probe"]) == 1
    assert "Configuration error" in capsys.readouterr().err


def test_no_port_and_no_discovery():
    config = AppConfig()
    config.serial.auto_discover = False
    assert resolve_transport_factory(config) is None


def test_explicit_port_builds_serial_transport():
    config = AppConfig()
    config.serial.port = "/dev/ttyUSB7"
    transport = resolve_transport_factory(config)()
    assert transport.name == "/dev/ttyUSB7"
    assert not transport.is_open
