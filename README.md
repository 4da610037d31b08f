# odometer

A command-line tool for benchmarking Ethereum execution clients through the
Engine API. For each client it starts a Docker Compose project, replays a set
of recorded Engine API requests, times the ones marked for measurement and
prints a table of gas throughput per client.

## Installation

```
pip install .
```

Docker with the `docker compose` command must be on the `PATH`.

## Layout expected in the working directory

The tool reads these paths relative to the directory you run it from:

- `clients/` holds one Docker Compose file per client, such as
  `clients/geth.yml`. The client name is the file name without `.yml`. The
  compose project is started as `odometer-<client>` with `up -d` and stopped
  with `down --volumes`.
- `tests/GasLimit/` holds the benchmark inputs as `*.json` files. Each file has
  a `name`, a `description` and a `sequence`. Every sequence entry has a
  `description`, an `expect_measurement` flag and a raw `request`, which is
  either an `engine_newPayloadV3` or an `engine_forkchoiceUpdatedV3` JSON-RPC
  call. Entries with `expect_measurement` set must be `engine_newPayloadV3`
  calls whose payload carries `gasUsed`.
- `config/jwt.hex` holds the hex-encoded JWT secret shared with the clients.

Each client must serve its authenticated Engine API at
`http://localhost:8551`. Every request is sent with a fresh HS256 token in the
`Authorization: Bearer` header.

## Usage

Measure gas throughput for every client in `clients/`:

```
odometer measure gas-limit
```

Measure only some clients by giving a comma-separated list (the option may
also be repeated):

```
odometer measure gas-limit --for geth,reth
```

Leaving out `--for`, or giving `--for all`, means every client.

Show the name, version, description and platform:

```
odometer --version
```

`-v` is the short form, and it is accepted after the subcommands as well.
Running `odometer` with no command prints the help text.

## Output

For each client the tool prints a banner, the Docker output and a progress
bar over the benchmarks. When all clients are done it prints a grid table with
one row per benchmark, sorted in natural order by name (so `test2` sorts
before `test10`), and one column per client. Each cell is the gas used divided
by the measured round-trip time, shown as `gas/s`, `Mgas/s` or `Ggas/s` with
two decimals for the latter two.

- If a client does not answer within 30 seconds it is stopped and skipped, and
  its column stays empty.
- A request that fails or returns an unreadable response prints `fail <error>`
  and is skipped.
- If no client matches, the tool prints an error and exits with status 1.
- If a `docker compose` command cannot be run or fails, the run stops with a
  `DockerCommandError`.

## Using it as a library

- `odometer.engine_api` models Engine API requests and responses
  (`EngineApiRequest`, `EngineApiResponse` and their parts) with
  `from_dict`/`to_dict` conversion; bad data raises `EngineApiParseError`.
- `odometer.bench` holds `BenchInput`, `SequenceItem` and
  `BenchRequestSummary`.
- `odometer.jwt_client.JwtClient(secret, rpc_url)` signs tokens with
  `create_jwt()` and sends requests with `send_request()`, raising
  `RequestError` or `ResponseDecodeError`.
- `odometer.docker.DockerCompose` wraps `up()`, `down()` and
  `wait_for_healthy()`.
- `odometer.core` has the helpers used by the command:
  `natural_lexical_cmp`, `parse_gas_used`, `compute_gas_per_second`,
  `format_gas_rate`, `get_clients`, `read_bench_inputs`,
  `benchmark_engine_api_request`, `build_table` and `run`.

## What it does not do

Only the gas-limit measurement exists. The tool does not ship any client
compose files, benchmark inputs or JWT secret; it does not save results
anywhere but prints the table to standard output.

## Running the tests

```
pip install .[test]
pytest
```