from concurrent.futures import ThreadPoolExecutor

DEFAULT_MAX_WORKERS = 16

_executor: ThreadPoolExecutor | None = None


def get_executor(max_workers: int | None = None) -> ThreadPoolExecutor:
    """Shared pool for blocking client calls, one thread per concurrent worker."""
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=max(max_workers or 0, DEFAULT_MAX_WORKERS),
            thread_name_prefix="kroundtrip-worker",
        )
    return _executor


def shutdown_executor() -> None:
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None
