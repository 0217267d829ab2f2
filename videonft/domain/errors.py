from typing import Optional


class VideoNftError(Exception):
    """Base class for all errors raised by videonft."""
    pass


class ValidationError(VideoNftError, ValueError):
    """Malformed user input: bad metadata JSON, missing file, bad config."""
    pass


class AssetTooLargeError(VideoNftError):
    """No bitrate above the floor can bring the asset under the size limit."""

    def __init__(self, size_bytes: int, size_limit_bytes: int, desired_bitrate: int, min_bitrate: int):
        self.size_bytes = size_bytes
        self.size_limit_bytes = size_limit_bytes
        self.desired_bitrate = desired_bitrate
        self.min_bitrate = min_bitrate
        super().__init__(
            f"Asset is too large to be downscaled to desired size "
            f"({size_bytes} > {size_limit_bytes} bytes, would need {desired_bitrate} bps "
            f"but minimum is {min_bitrate} bps)"
        )


class RemoteRequestError(VideoNftError):
    """Non-2xx response (or transport failure) from the video API."""

    def __init__(
        self,
        method: str,
        url: str,
        status_code: Optional[int],
        status_text: str,
        message: str,
    ):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.status_text = status_text
        self.message = message
        if status_code is None:
            super().__init__(f"Request to {method} {url} failed: {message}")
        else:
            super().__init__(f"Request to {method} {url} failed ({status_code} {status_text}): {message}")


class TaskFailedError(VideoNftError):
    """A polled task ended in the failed or cancelled phase."""

    def __init__(self, task_type: Optional[str], error_message: str, task_id: Optional[str] = None, phase: str = "failed"):
        self.task_type = task_type
        self.error_message = error_message
        self.task_id = task_id
        self.phase = phase
        super().__init__(f"{task_type or 'unknown'} task {phase}. error: {error_message}")


class TaskTimeoutError(VideoNftError):
    def __init__(self, task_id: Optional[str], timeout: float):
        self.task_id = task_id
        self.timeout = timeout
        super().__init__(f"Task {task_id} did not finish within {timeout:.1f}s")


class ChainError(VideoNftError):
    """Mint rejected, wrong chain connected or no signer configured."""
    pass
