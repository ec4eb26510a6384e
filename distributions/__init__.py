from .benchmarks import ACCOUNT_BENCHMARKS, get_benchmark_volatility, resolve_volatility
from .prices import (
    ExpectedReturnPriceSource,
    PriceSource,
    SampledPriceSource,
    StaticPriceSource,
)
from .sampler import (
    ConstantReturnSampler,
    LognormalReturnSampler,
    NormalReturnSampler,
    ReturnSampler,
    get_sampler,
)

__all__ = [
    "ACCOUNT_BENCHMARKS",
    "get_benchmark_volatility",
    "resolve_volatility",
    "PriceSource",
    "StaticPriceSource",
    "SampledPriceSource",
    "ExpectedReturnPriceSource",
    "ReturnSampler",
    "LognormalReturnSampler",
    "NormalReturnSampler",
    "ConstantReturnSampler",
    "get_sampler",
]
