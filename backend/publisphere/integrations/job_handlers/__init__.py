from publisphere.integrations.job_handlers.base_handler import (
    BaseJobHandler,
    HandlerNotImplementedError,
    HandlerResult,
    JobHandlerError,
    MissingPrerequisiteError,
    PublishTargetAuthError,
    PublishTargetError,
    UnsupportedJobTypeError,
)

__all__ = [
    "BaseJobHandler",
    "HandlerResult",
    "JobHandlerError",
    "MissingPrerequisiteError",
    "PublishTargetError",
    "PublishTargetAuthError",
    "HandlerNotImplementedError",
    "UnsupportedJobTypeError",
]
