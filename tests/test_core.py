import json
from functools import cmp_to_key

import pytest
import responses

from odometer.bench import BenchInput
from odometer.core import (
    benchmark_engine_api_request,
    build_table,
    compute_gas_per_second,
    format_gas_rate,
    get_clients,
    natural_lexical_cmp,
    parse_gas_used,
    read_bench_inputs,
    run,
)
from odometer.jwt_client import JwtClient

URL = "http://localhost:8551"


@pytest.fixture
def mocked():
    with responses.RequestsMock() as rsps:
        yield rsps


def _payload(gas_used="0x1c9c380"):
    payload = {
        "blockHash": "0x01",
        "blockNumber": "0x1",
        "parentHash": "0x00",
        "feeRecipient": "0x00",
        "gasLimit": "0x1c9c380",
        "prevRandao": "0x00",
        "receiptsRoot": "0x00",
        "stateRoot": "0x00",
        "timestamp": "0x1",
        "blobGasUsed": "0x0",
        "excessBlobGas": "0x0",
        "baseFeePerGas": "0x7",
        "extraData": "0x",
        "logsBloom": "0x00",
        "transactions": [],
        "withdrawals": [],
    }
    if gas_used is not None:
        payload["gasUsed"] = gas_used
    return payload


def _new_payload_request(gas_used="0x1c9c380"):
    return {
        "method": "engine_newPayloadV3",
        "jsonrpc": "2.0",
        "id": 1,
        "params": [_payload(gas_used), [], "0x00"],
    }


def _fcu_request():
    return {
        "method": "engine_forkchoiceUpdatedV3",
        "jsonrpc": "2.0",
        "id": 2,
        "params": [
            {"headBlockHash": "0x01", "safeBlockHash": "0x01", "finalizedBlockHash": "0x01"}
        ],
    }


def _bench(name, items):
    return {"name": name, "description": f"{name} block", "sequence": items}


NEW_PAYLOAD_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {"status": "VALID", "latestValidHash": "0x01", "validationError": None},
}


def test_natural_order_sorts_numbers_numerically():
    assert natural_lexical_cmp("test2", "test10") < 0
    assert natural_lexical_cmp("test10", "test2") > 0
    assert natural_lexical_cmp("test1", "test2") < 0
    key = cmp_to_key(natural_lexical_cmp)
    assert sorted(["test10", "test2", "test1"], key=key) == ["test1", "test2", "test10"]


def test_natural_cmp_equal_and_antisymmetric():
    assert natural_lexical_cmp("30M", "30M") == 0
    assert natural_lexical_cmp("5M", "30M") < 0
    assert natural_lexical_cmp("30M", "5M") > 0


def test_natural_cmp_ignores_non_numeric_characters():
    assert natural_lexical_cmp("a1", "b1") == 0


def test_natural_cmp_fewer_parts_is_less():
    assert natural_lexical_cmp("1", "1a") < 0
    assert natural_lexical_cmp("1a", "1") > 0


def test_parse_gas_used_with_and_without_prefix():
    assert parse_gas_used("0x1c9c380") == 30_000_000
    assert parse_gas_used("1c9c380") == parse_gas_used("0x1c9c380")


@pytest.mark.parametrize("text", ["0xzz", "0x", "", "0x1 2"])
def test_parse_gas_used_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_gas_used(text)


def test_parse_gas_used_rejects_overflow():
    with pytest.raises(ValueError):
        parse_gas_used("0x" + "f" * 33)


def test_compute_gas_per_second_zero_time():
    assert compute_gas_per_second(30_000_000, 0) == 0


def test_compute_gas_per_second_one_second():
    assert compute_gas_per_second(30_000_000, 1_000_000) == 30_000_000


def test_compute_gas_per_second_saturates():
    maximum = 2**128 - 1
    assert compute_gas_per_second(maximum, 1) == maximum


def test_format_gas_rate_units():
    assert format_gas_rate(1_000_000_000) == "1.00 Ggas/s"
    assert format_gas_rate(1_000_000) == "1.00 Mgas/s"
    assert format_gas_rate(999_999) == "999999 gas/s"


def test_format_gas_rate_zero():
    assert format_gas_rate(0).endswith(" gas/s")
    assert format_gas_rate(0).startswith("0")


def test_get_clients_lists_yml_files(tmp_path):
    for name in ["geth.yml", "reth.yml", "notes.txt", "a.yml.yml"]:
        (tmp_path / name).write_text("services: {}\n")
    assert get_clients([], tmp_path) == ["a", "geth", "reth"]


def test_get_clients_applies_filter(tmp_path):
    for name in ["geth.yml", "reth.yml"]:
        (tmp_path / name).write_text("services: {}\n")
    assert get_clients(["reth", "besu"], tmp_path) == ["reth"]


def test_get_clients_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_clients([], tmp_path / "absent")


def test_read_bench_inputs(tmp_path):
    (tmp_path / "b.json").write_text(json.dumps(_bench("30M", [])))
    (tmp_path / "a.json").write_text(
        json.dumps(
            _bench(
                "5M",
                [{"description": "fcu", "expect_measurement": False, "request": _fcu_request()}],
            )
        )
    )
    (tmp_path / "skip.txt").write_text("not json")
    inputs = read_bench_inputs(tmp_path)
    assert sorted(b.name for b in inputs) == ["30M", "5M"]
    five = next(b for b in inputs if b.name == "5M")
    assert len(five.sequence) == 1
    assert five.sequence[0].expect_measurement is False


def test_read_bench_inputs_invalid_json(tmp_path):
    (tmp_path / "bad.json").write_text("{")
    with pytest.raises(ValueError):
        read_bench_inputs(tmp_path)


def test_benchmark_keeps_only_measured_requests(mocked):
    mocked.add(responses.POST, URL, json=NEW_PAYLOAD_RESPONSE)
    mocked.add(responses.POST, URL, json=NEW_PAYLOAD_RESPONSE)
    bench = BenchInput.from_dict(
        _bench(
            "30M",
            [
                {"description": "setup", "expect_measurement": False, "request": _fcu_request()},
                {
                    "description": "measured",
                    "expect_measurement": True,
                    "request": _new_payload_request(),
                },
            ],
        )
    )
    summaries = benchmark_engine_api_request(bench, JwtClient(b"secret", URL))
    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.description == "measured"
    assert summary.gas_used == "0x1c9c380"
    assert summary.response.result.status == "VALID"
    assert summary.time_taken_microseconds >= 0
    assert len(mocked.calls) == 2


def test_benchmark_skips_failed_requests(mocked, capsys):
    mocked.add(responses.POST, URL, body="not json")
    bench = BenchInput.from_dict(
        _bench(
            "30M",
            [
                {
                    "description": "measured",
                    "expect_measurement": True,
                    "request": _new_payload_request(),
                }
            ],
        )
    )
    summaries = benchmark_engine_api_request(bench, JwtClient(b"secret", URL))
    assert summaries == []
    assert capsys.readouterr().out.startswith("fail ")


def test_benchmark_requires_gas_used_for_measured_items(mocked):
    mocked.add(responses.POST, URL, json=NEW_PAYLOAD_RESPONSE)
    bench = BenchInput.from_dict(
        _bench(
            "30M",
            [
                {
                    "description": "measured",
                    "expect_measurement": True,
                    "request": _new_payload_request(gas_used=None),
                }
            ],
        )
    )
    with pytest.raises(ValueError, match="gas used"):
        benchmark_engine_api_request(bench, JwtClient(b"secret", URL))


def test_build_table_contains_every_cell():
    inputs = [
        BenchInput.from_dict(_bench("5M", [])),
        BenchInput.from_dict(_bench("30M", [])),
    ]
    clients = ["geth", "reth"]
    results = [["1.00 Mgas/s", ""], ["2.00 Ggas/s", "10 gas/s"]]
    table = build_table(inputs, clients, results)
    for text in ["Name", "Description", "geth", "reth", "5M block", "30M block"]:
        assert text in table
    for row in results:
        for cell in row:
            assert cell in table
    lines = table.splitlines()
    assert lines.index(next(l for l in lines if "5M block" in l)) < lines.index(
        next(l for l in lines if "30M block" in l)
    )


def test_run_without_clients_exits(tmp_path, monkeypatch, capsys):
    (tmp_path / "tests" / "GasLimit").mkdir(parents=True)
    (tmp_path / "clients").mkdir()
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        run([])
    assert excinfo.value.code == 1
    assert "No clients found in clients directory" in capsys.readouterr().err