"""Engine API request and response models with JSON conversion."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class EngineApiParseError(ValueError):
    """Raised when Engine API data does not have the expected shape."""


def _expect_mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise EngineApiParseError(f"invalid type for {what}: expected an object")
    return data


def _get_str(data: dict, key: str) -> str:
    if key not in data:
        raise EngineApiParseError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise EngineApiParseError(f"invalid type for `{key}`: expected a string")
    return value


def _get_opt_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise EngineApiParseError(f"invalid type for `{key}`: expected a string or null")
    return value


def _get_str_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise EngineApiParseError(f"invalid type for `{key}`: expected a list of strings")
    return list(value)


def _get_u64(data: dict, key: str) -> int:
    if key not in data:
        raise EngineApiParseError(f"missing field `{key}`")
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**64:
        raise EngineApiParseError(f"invalid value for `{key}`: expected an unsigned 64-bit integer")
    return value


@dataclass
class ForkChoiceState:
    """Head, safe and finalized block hashes of a fork choice update."""

    head_block_hash: str
    safe_block_hash: str
    finalized_block_hash: str

    @classmethod
    def from_dict(cls, data: Any) -> ForkChoiceState:
        data = _expect_mapping(data, "ForkChoiceState")
        return cls(
            head_block_hash=_get_str(data, "headBlockHash"),
            safe_block_hash=_get_str(data, "safeBlockHash"),
            finalized_block_hash=_get_str(data, "finalizedBlockHash"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "headBlockHash": self.head_block_hash,
            "safeBlockHash": self.safe_block_hash,
            "finalizedBlockHash": self.finalized_block_hash,
        }


@dataclass
class Withdrawal:
    """A validator withdrawal carried in an execution payload."""

    index: str
    validator_index: str
    address: str
    amount: str

    @classmethod
    def from_dict(cls, data: Any) -> Withdrawal:
        data = _expect_mapping(data, "Withdrawal")
        return cls(
            index=_get_str(data, "index"),
            validator_index=_get_str(data, "validatorIndex"),
            address=_get_str(data, "address"),
            amount=_get_str(data, "amount"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "validatorIndex": self.validator_index,
            "address": self.address,
            "amount": self.amount,
        }


# (attribute name, JSON key) for the plain string fields of a payload.
_PAYLOAD_STR_FIELDS = (
    ("block_hash", "blockHash"),
    ("block_number", "blockNumber"),
    ("parent_hash", "parentHash"),
    ("fee_recipient", "feeRecipient"),
    ("gas_limit", "gasLimit"),
    ("prev_randao", "prevRandao"),
    ("receipts_root", "receiptsRoot"),
    ("state_root", "stateRoot"),
    ("timestamp", "timestamp"),
    ("blob_gas_used", "blobGasUsed"),
    ("excess_blob_gas", "excessBlobGas"),
    ("base_fee_per_gas", "baseFeePerGas"),
    ("extra_data", "extraData"),
    ("logs_bloom", "logsBloom"),
)


@dataclass
class ExecutionPayload:
    """A V3 execution payload; all quantities are hex strings."""

    block_hash: str
    block_number: str
    parent_hash: str
    fee_recipient: str
    gas_limit: str
    prev_randao: str
    receipts_root: str
    state_root: str
    timestamp: str
    blob_gas_used: str
    excess_blob_gas: str
    base_fee_per_gas: str
    extra_data: str
    logs_bloom: str
    gas_used: str | None = None
    transactions: list[str] | None = None
    withdrawals: list[Withdrawal] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ExecutionPayload:
        data = _expect_mapping(data, "ExecutionPayload")
        values: dict[str, Any] = {attr: _get_str(data, key) for attr, key in _PAYLOAD_STR_FIELDS}
        values["gas_used"] = _get_opt_str(data, "gasUsed")
        transactions = data.get("transactions")
        values["transactions"] = (
            None if transactions is None else _get_str_list(transactions, "transactions")
        )
        withdrawals = data.get("withdrawals")
        if withdrawals is None:
            values["withdrawals"] = None
        elif isinstance(withdrawals, list):
            values["withdrawals"] = [Withdrawal.from_dict(item) for item in withdrawals]
        else:
            raise EngineApiParseError("invalid type for `withdrawals`: expected a list")
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {key: getattr(self, attr) for attr, key in _PAYLOAD_STR_FIELDS}
        result["gasUsed"] = self.gas_used
        result["transactions"] = None if self.transactions is None else list(self.transactions)
        result["withdrawals"] = (
            None if self.withdrawals is None else [w.to_dict() for w in self.withdrawals]
        )
        return result


@dataclass
class NewPayloadParams:
    """Positional parameters of engine_newPayloadV3."""

    payload: ExecutionPayload
    versioned_hashes: list[str] = field(default_factory=list)
    parent_beacon_block_root: str = ""

    @classmethod
    def from_list(cls, data: Any) -> NewPayloadParams:
        if not isinstance(data, list) or len(data) != 3:
            raise EngineApiParseError("invalid length for NewPayloadParams: expected 3 elements")
        payload, hashes, root = data
        if not isinstance(root, str):
            raise EngineApiParseError("invalid type for parent beacon block root: expected a string")
        return cls(
            payload=ExecutionPayload.from_dict(payload),
            versioned_hashes=_get_str_list(hashes, "versioned hashes"),
            parent_beacon_block_root=root,
        )

    def to_list(self) -> list[Any]:
        return [self.payload.to_dict(), list(self.versioned_hashes), self.parent_beacon_block_root]


class EngineMethod(str, Enum):
    """Engine API methods that can be benchmarked."""

    NEW_PAYLOAD_V3 = "engine_newPayloadV3"
    FORKCHOICE_UPDATED_V3 = "engine_forkchoiceUpdatedV3"


@dataclass
class EngineApiRequest:
    """A JSON-RPC request to the Engine API."""

    method: EngineMethod
    jsonrpc: str
    id: int
    params: Union[NewPayloadParams, list[ForkChoiceState]]

    @classmethod
    def from_dict(cls, data: Any) -> EngineApiRequest:
        data = _expect_mapping(data, "EngineApiRequest")
        if "method" not in data:
            raise EngineApiParseError("missing field `method`")
        try:
            method = EngineMethod(data["method"])
        except ValueError:
            raise EngineApiParseError(f"unknown variant `{data['method']}`") from None
        jsonrpc = _get_str(data, "jsonrpc")
        request_id = _get_u64(data, "id")
        if "params" not in data:
            raise EngineApiParseError("missing field `params`")
        raw_params = data["params"]
        params: Union[NewPayloadParams, list[ForkChoiceState]]
        if method is EngineMethod.NEW_PAYLOAD_V3:
            params = NewPayloadParams.from_list(raw_params)
        else:
            if not isinstance(raw_params, list):
                raise EngineApiParseError("invalid type for `params`: expected a list")
            params = [ForkChoiceState.from_dict(item) for item in raw_params]
        return cls(method=method, jsonrpc=jsonrpc, id=request_id, params=params)

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.params, NewPayloadParams):
            params: Any = self.params.to_list()
        else:
            params = [state.to_dict() for state in self.params]
        return {
            "method": self.method.value,
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "params": params,
        }

    def to_json(self) -> str:
        """Serialise the request as pretty-printed JSON."""
        return json.dumps(self.to_dict(), indent=2)

    def gas_used(self) -> str | None:
        """The payload's gas used, for new-payload requests that carry one."""
        if self.method is EngineMethod.NEW_PAYLOAD_V3 and isinstance(self.params, NewPayloadParams):
            return self.params.payload.gas_used
        return None


@dataclass
class PayloadStatus:
    """Validation status of a payload."""

    status: str
    witness: str | None = None
    latest_valid_hash: str | None = None
    validation_error: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> PayloadStatus:
        data = _expect_mapping(data, "PayloadStatus")
        return cls(
            status=_get_str(data, "status"),
            witness=_get_opt_str(data, "witness"),
            latest_valid_hash=_get_opt_str(data, "latestValidHash"),
            validation_error=_get_opt_str(data, "validationError"),
        )


@dataclass
class ForkChoiceUpdatedResult:
    """Result of engine_forkchoiceUpdatedV3."""

    payload_status: PayloadStatus
    payload_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ForkChoiceUpdatedResult:
        data = _expect_mapping(data, "ForkChoiceUpdatedResult")
        if "payloadStatus" not in data:
            raise EngineApiParseError("missing field `payloadStatus`")
        return cls(
            payload_status=PayloadStatus.from_dict(data["payloadStatus"]),
            payload_id=_get_opt_str(data, "payloadId"),
        )


@dataclass
class NewPayloadResult:
    """Result of engine_newPayloadV3."""

    status: str
    witness: str | None = None
    latest_valid_hash: str | None = None
    validation_error: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> NewPayloadResult:
        data = _expect_mapping(data, "NewPayloadResult")
        return cls(
            status=_get_str(data, "status"),
            witness=_get_opt_str(data, "witness"),
            latest_valid_hash=_get_opt_str(data, "latestValidHash"),
            validation_error=_get_opt_str(data, "validationError"),
        )


def _parse_result(data: Any) -> Union[ForkChoiceUpdatedResult, NewPayloadResult]:
    for variant in (ForkChoiceUpdatedResult, NewPayloadResult):
        try:
            return variant.from_dict(data)
        except EngineApiParseError:
            continue
    raise EngineApiParseError("data did not match any variant of the result type")


@dataclass
class EngineApiResponse:
    """A JSON-RPC response from the Engine API."""

    jsonrpc: str
    id: int
    result: Union[ForkChoiceUpdatedResult, NewPayloadResult]

    @classmethod
    def from_dict(cls, data: Any) -> EngineApiResponse:
        data = _expect_mapping(data, "EngineApiResponse")
        jsonrpc = _get_str(data, "jsonrpc")
        response_id = _get_u64(data, "id")
        if "result" not in data:
            raise EngineApiParseError("missing field `result`")
        return cls(jsonrpc=jsonrpc, id=response_id, result=_parse_result(data["result"]))

    @classmethod
    def from_json(cls, text: str) -> EngineApiResponse:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise EngineApiParseError(str(exc)) from exc
        return cls.from_dict(data)


@dataclass
class TimedEngineApiResponse:
    """A response together with the round-trip time of its request."""

    time_taken_microseconds: int
    response: EngineApiResponse