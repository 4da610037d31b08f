"""Running the gas-limit benchmarks against every client and tabulating the results."""

from __future__ import annotations

import re
import sys
from functools import cmp_to_key
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from tabulate import tabulate
from tqdm import tqdm

from odometer.bench import BenchInput, BenchRequestSummary
from odometer.docker import DockerCompose, DockerError
from odometer.jwt_client import JwtClient, JwtError

BENCHMARK_DIR = "tests/GasLimit"
CLIENTS_DIR = "clients"
JWT_HEX_PATH = Path("config") / "jwt.hex"
ENGINE_URL = "http://localhost:8551"
HEALTH_TIMEOUT_SECS = 30

_U64_LIMIT = 2**64
_U128_MAX = 2**128 - 1
_HEX_DIGITS = re.compile(r"\+?[0-9a-fA-F]+")
_RULE = "━" * 40


def _numeric_parts(text: str) -> Iterator[str]:
    """Split *text* on every non-numeric character, dropping the separators."""
    current: list[str] = []
    for ch in text:
        if ch.isnumeric():
            current.append(ch)
        else:
            yield "".join(current)
            current = []
    yield "".join(current)


def _as_u64(part: str) -> int | None:
    if part and all(ch in "0123456789" for ch in part):
        value = int(part)
        if value < _U64_LIMIT:
            return value
    return None


def natural_lexical_cmp(a: str, b: str) -> int:
    """Compare two names so that embedded numbers sort numerically.

    Returns a negative number, zero or a positive number, as for
    ``functools.cmp_to_key``.
    """
    a_parts = _numeric_parts(a)
    b_parts = _numeric_parts(b)
    while True:
        a_part = next(a_parts, None)
        b_part = next(b_parts, None)
        if a_part is None and b_part is None:
            return 0
        if a_part is None:
            return -1
        if b_part is None:
            return 1
        a_num, b_num = _as_u64(a_part), _as_u64(b_part)
        if a_num is not None and b_num is not None:
            left, right = a_num, b_num
        else:
            left, right = a_part, b_part
        if left < right:
            return -1
        if left > right:
            return 1


def parse_gas_used(gas_used_hex: str) -> int:
    """Parse a hex quantity such as ``0x1c9c380`` into an integer."""
    digits = gas_used_hex
    while digits.startswith("0x"):
        digits = digits[2:]
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"Failed to parse hexadecimal string: {gas_used_hex!r}")
    value = int(digits, 16)
    if value > _U128_MAX:
        raise ValueError(f"Failed to parse hexadecimal string: {gas_used_hex!r}")
    return value


def compute_gas_per_second(gas_used: int, time_us: int) -> int:
    """Gas processed per second, given the elapsed time in microseconds."""
    if time_us == 0:
        return 0
    return min(gas_used * 1_000_000, _U128_MAX) // time_us


def format_gas_rate(gas_per_second: int) -> str:
    """Render a gas rate with a Ggas/s, Mgas/s or gas/s unit."""
    if gas_per_second >= 1_000_000_000:
        return f"{gas_per_second / 1_000_000_000:.2f} Ggas/s"
    if gas_per_second >= 1_000_000:
        return f"{gas_per_second / 1_000_000:.2f} Mgas/s"
    return f"{gas_per_second} gas/s"


def get_clients(client_filter: Sequence[str], clients_dir: str | Path = CLIENTS_DIR) -> list[str]:
    """Names of the clients with a compose file, limited to *client_filter* if it is not empty."""
    clients = []
    for entry in sorted(Path(clients_dir).iterdir()):
        if entry.suffix != ".yml":
            continue
        name = entry.name
        while name.endswith(".yml"):
            name = name[: -len(".yml")]
        clients.append(name)
    if not client_filter:
        return clients
    return [client for client in clients if client in client_filter]


def read_bench_inputs(path_to_dir: str | Path) -> list[BenchInput]:
    """Load every ``.json`` benchmark definition in *path_to_dir*."""
    return [
        BenchInput.from_json(entry.read_text(encoding="utf-8"))
        for entry in sorted(Path(path_to_dir).iterdir())
        if entry.suffix == ".json"
    ]


def benchmark_engine_api_request(
    bench_input: BenchInput, client: JwtClient
) -> list[BenchRequestSummary]:
    """Send a benchmark's request sequence and keep the measured timings."""
    summaries = []
    for item in bench_input.sequence:
        try:
            timed = client.send_request(item.request)
        except JwtError as err:
            print(f"fail {err}")
            continue
        if not item.expect_measurement:
            continue
        gas_used = item.request.gas_used()
        if gas_used is None:
            raise ValueError("expected a gas used parameter for elements we are benchmarking")
        summaries.append(
            BenchRequestSummary(
                description=item.description,
                time_taken_microseconds=timed.time_taken_microseconds,
                gas_used=gas_used,
                response=timed.response,
            )
        )
    return summaries


def build_table(
    bench_inputs: Iterable[BenchInput],
    clients: Sequence[str],
    results: Sequence[Sequence[str]],
) -> str:
    """Render one row per benchmark and one column per client."""
    header = ["Name", "Description", *clients]
    rows = [
        [bench.name, bench.description, *row]
        for bench, row in zip(bench_inputs, results)
    ]
    return tabulate(rows, headers=header, tablefmt="grid")


def _jwt_client() -> JwtClient:
    hex_text = JWT_HEX_PATH.read_text(encoding="utf-8").strip()
    return JwtClient(bytes.fromhex(hex_text), ENGINE_URL)


def run(client_filter: Sequence[str]) -> None:
    """Benchmark every selected client on every gas-limit test and print the table."""
    bench_inputs = sorted(
        read_bench_inputs(BENCHMARK_DIR),
        key=cmp_to_key(lambda x, y: natural_lexical_cmp(x.name, y.name)),
    )
    clients = get_clients(client_filter)
    if not clients:
        print("Error: No clients found in clients directory", file=sys.stderr)
        raise SystemExit(1)

    results = [["" for _ in clients] for _ in bench_inputs]
    total = len(clients)

    for client_idx, client in enumerate(clients):
        print(f"\n{_RULE}")
        print(f"  Processing [{client_idx + 1}/{total}] {client}")
        print(f"{_RULE}\n")

        print("🐳 Starting docker container...")
        compose = DockerCompose(f"{client}.yml")
        compose.up()

        print("Waiting for client to be ready...")
        try:
            compose.wait_for_healthy(HEALTH_TIMEOUT_SECS)
        except DockerError as err:
            print(f"Failed to start client {client}: {err}", file=sys.stderr)
            print("Stopping docker container...")
            compose.down()
            continue
        print("Client is ready!")

        print(f"Running benchmarks for {client}...")
        for test_idx, bench_input in tqdm(enumerate(bench_inputs), total=len(bench_inputs)):
            for summary in benchmark_engine_api_request(bench_input, _jwt_client()):
                rate = compute_gas_per_second(
                    parse_gas_used(summary.gas_used), summary.time_taken_microseconds
                )
                results[test_idx][client_idx] = format_gas_rate(rate)

        print(f"Stopping docker container for {client}...")
        compose.down()

    print(build_table(bench_inputs, clients, results))