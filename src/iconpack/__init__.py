from iconpack.config import OptimizerOptions
from iconpack.config import PackConfig
from iconpack.config import RasterOptions
from iconpack.pipeline import CompileResult
from iconpack.pipeline import Diagnostic
from iconpack.pipeline import PipelineCoordinator

__version__ = "0.1.0"

__all__ = [
    "CompileResult",
    "Diagnostic",
    "OptimizerOptions",
    "PackConfig",
    "PipelineCoordinator",
    "RasterOptions",
]
