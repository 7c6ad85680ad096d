"""
Base class for contract code running on the in-process chain.

Contract methods are exposed with the ``@external`` decorator, which binds a
canonical Solidity signature (and its return types) to the method. Incoming
calldata is dispatched on the 4-byte selector, arguments are ABI decoded and
the return value is ABI encoded, so callers only ever see raw bytes.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Sequence, Tuple

from eth_abi.exceptions import DecodingError

from .abi import decode_arguments, encode_arguments, event_topic, selector, split_signature
from .errors import ExecutionReverted
from .state import LogEntry

if TYPE_CHECKING:
    from .chain import CallResult, Chain


@dataclass(frozen=True)
class CallContext:
    """Message context seen by contract code (msg.sender, msg.value, msg.data)."""

    sender: str
    value: int
    data: bytes


@dataclass(frozen=True)
class ExternalFunction:
    signature: str
    returns: Tuple[str, ...]
    payable: bool
    method_name: str

    @property
    def argument_types(self) -> Sequence[str]:
        return split_signature(self.signature)[1]


def external(signature: str, returns: Sequence[str] = (), payable: bool = False) -> Callable:
    """Expose a contract method under a Solidity signature."""

    def decorator(func: Callable) -> Callable:
        func._external = (signature, tuple(returns), payable)
        return func

    return decorator


class Contract:
    """
    Contract code bound to an address on a chain.

    Instances keep no state of their own: everything lives in the chain's
    world state so that reverts roll it back.
    """

    _functions: Dict[bytes, ExternalFunction] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        functions: Dict[bytes, ExternalFunction] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, attr in vars(klass).items():
                exposed = getattr(attr, "_external", None)
                if exposed is None:
                    continue
                signature, returns, payable = exposed
                functions[selector(signature)] = ExternalFunction(
                    signature, returns, payable, attr_name
                )
        cls._functions = functions

    def __init__(self, chain: "Chain", address: str):
        self.chain = chain
        self.address = address
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def constructor(self, ctx: CallContext, *args: Any) -> None:
        """Runs once at deployment."""

    def dispatch(self, ctx: CallContext) -> bytes:
        if not ctx.data:
            return self.receive(ctx)

        function = self._functions.get(bytes(ctx.data[:4]))
        if function is None:
            return self.fallback(ctx)

        if ctx.value and not function.payable:
            return self.reject_value(ctx, function)

        try:
            args = decode_arguments(function.argument_types, ctx.data[4:])
        except DecodingError as e:
            raise ExecutionReverted(f"Invalid calldata for {function.signature}: {e}") from e

        result = getattr(self, function.method_name)(ctx, *args)

        if not function.returns:
            return b""
        if len(function.returns) == 1:
            result = (result,)
        return encode_arguments(function.returns, result)

    def receive(self, ctx: CallContext) -> bytes:
        """Plain value transfer (empty calldata)."""
        raise ExecutionReverted(f"{self.__class__.__name__} cannot receive value")

    def fallback(self, ctx: CallContext) -> bytes:
        """Calldata matching no external function."""
        raise ExecutionReverted(f"{self.__class__.__name__} has no function {ctx.data[:4].hex()}")

    def reject_value(self, ctx: CallContext, function: ExternalFunction) -> bytes:
        """Value attached to a non-payable function."""
        raise ExecutionReverted(f"{function.signature} is not payable")

    @property
    def balance(self) -> int:
        return self.chain.state.get_balance(self.address)

    def sload(self, key: Any, default: Any = 0) -> Any:
        return self.chain.state.load(self.address, key, default)

    def sstore(self, key: Any, value: Any) -> None:
        self.chain.charge_storage_write()
        self.chain.state.store(self.address, key, value)

    def emit(
        self,
        signature: str,
        indexed: Sequence[Tuple[str, Any]] = (),
        data: Sequence[Tuple[str, Any]] = (),
    ) -> None:
        """
        Emit an event.

        Args:
            signature: Canonical event signature
            indexed: (type, value) pairs placed in topics 1..3
            data: (type, value) pairs ABI encoded into the log data
        """
        topics = [event_topic(signature)]
        for abi_type, value in indexed:
            topics.append(encode_arguments([abi_type], [value]))
        payload = encode_arguments([t for t, _ in data], [v for _, v in data])

        self.chain.charge_log(len(topics), len(payload))
        self.chain.state.emit(LogEntry(self.address, tuple(topics), payload))

    def call(self, target: str, value: int = 0, data: bytes = b"") -> "CallResult":
        """Message call from this contract; failures are returned, not raised."""
        return self.chain.message_call(self.address, target, value, data)
