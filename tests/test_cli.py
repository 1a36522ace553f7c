import os

import pytest

from og_uploader import cli
from og_uploader.errors import InsufficientBalance
from og_uploader.runner import BatchSummary

from conftest import CONTRACT, TEST_KEY

ENV = {
    "PRIVATE_KEY": TEST_KEY,
    "RPC_URL": "http://rpc.local",
    "INDEXER_URL": "http://indexer.local",
    "CONTRACT_ADDRESS": CONTRACT,
}


class StubRunner:
    def __init__(self, settings, preflight_error=None):
        self.settings = settings
        self.preflight_error = preflight_error
        self.preflight_calls = 0
        self.run_calls = 0
        self.transactions = type("T", (), {"account": type("A", (), {"address": "0xabc"})()})()

    def preflight(self):
        self.preflight_calls += 1
        if self.preflight_error:
            raise self.preflight_error

    def run(self):
        self.run_calls += 1
        return BatchSummary(total=self.settings.uploads)


@pytest.mark.parametrize("missing", ["PRIVATE_KEY", "RPC_URL", "INDEXER_URL"])
def test_missing_config_exits_without_network(missing, console, mocker):
    web3 = mocker.patch("og_uploader.cli.Web3")
    image_source = mocker.patch("og_uploader.cli.ImageSource")
    env = {k: v for k, v in ENV.items() if k != missing}

    assert cli.main([], env=env, console=console) == 1
    web3.assert_not_called()
    image_source.assert_not_called()
    assert missing in console.stream.getvalue()


def test_completed_batch_exits_zero(console, mocker):
    runners = []

    def build(settings, console):
        runners.append(StubRunner(settings))
        return runners[0]

    mocker.patch("og_uploader.cli.build_runner", side_effect=build)
    assert cli.main(["--uploads", "4", "--delay-ms", "0"], env=ENV, console=console) == 0

    runner = runners[0]
    assert runner.settings.uploads == 4
    assert runner.settings.delay_ms == 0
    assert runner.preflight_calls == 1
    assert runner.run_calls == 1


def test_low_balance_aborts_batch(console, mocker):
    runner = None

    def build(settings, console):
        nonlocal runner
        runner = StubRunner(settings, InsufficientBalance("0xabc", 1, 2))
        return runner

    mocker.patch("og_uploader.cli.build_runner", side_effect=build)
    assert cli.main([], env=ENV, console=console) == 1
    assert runner.run_calls == 0
    assert "A critical error occurred" in console.stream.getvalue()


def test_no_preflight_flag(console, mocker):
    holder = {}

    def build(settings, console):
        holder["runner"] = StubRunner(settings, InsufficientBalance("0xabc", 1, 2))
        return holder["runner"]

    mocker.patch("og_uploader.cli.build_runner", side_effect=build)
    assert cli.main(["--no-preflight"], env=ENV, console=console) == 0
    assert holder["runner"].preflight_calls == 0
    assert holder["runner"].run_calls == 1


def test_sdk_mode_does_not_need_contract(console, mocker):
    holder = {}

    def build(settings, console):
        holder["settings"] = settings
        return StubRunner(settings)

    mocker.patch("og_uploader.cli.build_runner", side_effect=build)
    env = {k: v for k, v in ENV.items() if k != "CONTRACT_ADDRESS"}
    assert cli.main(["--mode", "sdk"], env=env, console=console) == 0
    assert holder["settings"].upload_mode == "sdk"


def test_build_runner_wires_segment_mode(settings, console):
    runner = cli.build_runner(settings, console)
    assert runner.storage.indexer.segment_url == "http://indexer.local/file/segment"
    assert runner.transactions.encoder.name == "abi"
    assert runner.image_source.url == settings.image_url


def test_env_file_found_from_working_directory(tmp_path, monkeypatch, console, mocker):
    (tmp_path / ".env").write_text(
        "".join(f"{key}={value}\n" for key, value in ENV.items()) + "UPLOADS_TO_RUN=2\n"
    )
    monkeypatch.chdir(tmp_path)
    mocker.patch.dict(os.environ, clear=True)
    holder = {}

    def build(settings, console):
        holder["settings"] = settings
        return StubRunner(settings)

    mocker.patch("og_uploader.cli.build_runner", side_effect=build)
    assert cli.main(["--no-preflight"], console=console) == 0
    assert holder["settings"].rpc_url == "http://rpc.local"
    assert holder["settings"].uploads == 2


def test_zero_uploads_rejected(console, mocker):
    build = mocker.patch("og_uploader.cli.build_runner")
    assert cli.main(["--uploads", "0"], env=ENV, console=console) == 1
    build.assert_not_called()
    assert "UPLOADS_TO_RUN must be at least 1" in console.stream.getvalue()
