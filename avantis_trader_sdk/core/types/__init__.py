from avantis_trader_sdk.core.types._callback_types import (
    CloseHook,
    Connector,
    ErrorHook,
    PriceUpdateCallback,
    SleepFunc,
    SyncOrAsyncCallable,
)
from avantis_trader_sdk.core.types._common_types import (
    SIDE_LONG,
    SIDE_SHORT,
    Address,
    ContractName,
    FeedConnectionState,
    FeedId,
    GroupIndex,
    GroupKey,
    PairIndex,
    PairName,
    RawMessage,
    feed_state_format,
    group_key,
)
from avantis_trader_sdk.core.types._exception_types import (
    ErrorCategory,
    ErrorKind,
    ExceptionGroupType,
)

__all__ = [
    # _common_types
    "PairIndex",
    "GroupIndex",
    "PairName",
    "FeedId",
    "GroupKey",
    "Address",
    "ContractName",
    "RawMessage",
    "SIDE_LONG",
    "SIDE_SHORT",
    "FeedConnectionState",
    "feed_state_format",
    "group_key",
    # _callback_types
    "PriceUpdateCallback",
    "ErrorHook",
    "CloseHook",
    "SleepFunc",
    "Connector",
    "SyncOrAsyncCallable",
    # _exception_types
    "ErrorKind",
    "ErrorCategory",
    "ExceptionGroupType",
]
