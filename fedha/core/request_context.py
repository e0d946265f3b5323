from __future__ import annotations

from contextvars import ContextVar

# Only read by the log formatter; authorization never looks at these.
_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_ID_CTX: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_PRINCIPAL_ID_CTX: ContextVar[str | None] = ContextVar("principal_id", default=None)


def set_request_context(
    *, request_id: str | None = None, tenant_id: str | None = None, principal_id: str | None = None
) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if tenant_id is not None:
        _TENANT_ID_CTX.set(tenant_id)
    if principal_id is not None:
        _PRINCIPAL_ID_CTX.set(principal_id)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_tenant_id() -> str | None:
    return _TENANT_ID_CTX.get()


def get_principal_id() -> str | None:
    return _PRINCIPAL_ID_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _TENANT_ID_CTX.set(None)
    _PRINCIPAL_ID_CTX.set(None)
