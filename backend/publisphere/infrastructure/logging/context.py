from contextvars import ContextVar

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
_job_id_ctx: ContextVar[str | None] = ContextVar("job_id", default=None)


def set_request_id(request_id: str | None) -> object:
    return _request_id_ctx.set(request_id)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def reset_request_id(token: object) -> None:
    _request_id_ctx.reset(token)


def set_job_id(job_id: str | None) -> object:
    return _job_id_ctx.set(job_id)


def get_job_id() -> str | None:
    return _job_id_ctx.get()


def reset_job_id(token: object) -> None:
    _job_id_ctx.reset(token)
