"""Simulated execution environment: clock, native balances, wrapped asset"""
from mintauction.core.state.clock import Clock, SystemClock, ManualClock
from mintauction.core.state.chain import (
    Chain,
    GasMeter,
    ReceiveContext,
    ReceiveHook,
    Stateful,
)
from mintauction.core.state.wrapped import WrappedValueAsset

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "Chain",
    "GasMeter",
    "ReceiveContext",
    "ReceiveHook",
    "Stateful",
    "WrappedValueAsset",
]
