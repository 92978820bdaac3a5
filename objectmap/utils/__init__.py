from .profiling import Profiler, StageTiming, get_profiler, profile

__all__ = ["Profiler", "StageTiming", "get_profiler", "profile"]
