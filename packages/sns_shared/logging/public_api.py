"""Instrumentation for public service methods.

``public_api_instrumented`` wraps a method so that every call produces one
``InvocationContext`` before it runs and one ``CompletionContext`` after it
returns or raises. Concerns receive both events: logging when a logger is
given, OpenTelemetry metrics when ``opentelemetry`` is importable, and any
extra concerns the caller passes. A failing concern is logged and skipped;
it never changes the method's result.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache, wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from . import context as ctx

_METER_NAME = "sns.public_api"


@dataclass(frozen=True)
class InvocationContext:
    """Identity of one call: component, method, correlation ids, references."""

    component_id: str
    api_name: str
    trace_id: str | None
    envelope_id: str | None
    principal: str | None
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Outcome of one call, with ``code: message`` summaries of its errors."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]
    error_categories: list[str]


class PublicApiInstrumentationConcern(Protocol):
    def on_invocation(self, context: InvocationContext) -> None: ...

    def on_completion(self, context: CompletionContext) -> None: ...


class PublicApiLoggingConcern:
    """Logs both events; failed completions are logged at WARNING."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        with ctx.log_context(_call_fields(context)):
            self._logger.info("Public API invocation")

    def on_completion(self, context: CompletionContext) -> None:
        fields = _call_fields(context.invocation)
        fields[ctx.EVENT] = "public_api_completion"
        fields[ctx.SUCCESS] = context.success
        fields[ctx.DURATION_MS] = context.duration_ms
        fields[ctx.ERRORS] = context.errors
        log = self._logger.info if context.success else self._logger.warning
        with ctx.log_context(fields):
            log("Public API completion")


class _Counter(Protocol):
    def add(self, amount: int | float, attributes: Mapping[str, str]) -> None: ...


class _Histogram(Protocol):
    def record(self, amount: float, attributes: Mapping[str, str]) -> None: ...


class PublicApiMetricsConcern:
    """Counts calls, records latency and counts failures per error category."""

    def __init__(
        self,
        *,
        calls_total: _Counter,
        duration_ms: _Histogram,
        errors_total: _Counter,
    ) -> None:
        self._calls_total = calls_total
        self._duration_ms = duration_ms
        self._errors_total = errors_total

    def on_invocation(self, context: InvocationContext) -> None:
        return None

    def on_completion(self, context: CompletionContext) -> None:
        method = {
            ctx.COMPONENT_ID: context.invocation.component_id,
            ctx.API_NAME: context.invocation.api_name,
        }
        outcome = {**method, ctx.OUTCOME: "success" if context.success else "failure"}
        self._calls_total.add(1, attributes=outcome)
        self._duration_ms.record(context.duration_ms, attributes=outcome)
        if not context.success:
            for category in context.error_categories or ["unknown"]:
                self._errors_total.add(1, attributes={**method, ctx.ERROR_CATEGORY: category})


def public_api_instrumented(
    *,
    component_id: str,
    api_name: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[PublicApiInstrumentationConcern] | None = None,
    logger: Any | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Instrument a keyword-only public method.

    ``id_fields`` names keyword arguments copied into the invocation
    references; ``bytes`` values are rendered as hex. Exceptions raised by the
    wrapped method are reported as failed completions and then re-raised.
    """
    hooks: list[PublicApiInstrumentationConcern] = []
    if logger is not None:
        hooks.append(PublicApiLoggingConcern(logger=logger))
    hooks.extend(concerns or ())
    metrics = _otel_metrics_concern()
    if metrics is not None:
        hooks.append(metrics)
    if not hooks:
        raise ValueError("public_api_instrumented requires at least one concern")
    dispatch = _Dispatcher(tuple(hooks), logger)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = api_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            meta = kwargs.get("meta")
            invocation = InvocationContext(
                component_id=component_id,
                api_name=name,
                trace_id=_meta_value(meta, "trace_id"),
                envelope_id=_meta_value(meta, "envelope_id"),
                principal=_meta_value(meta, "principal"),
                references={
                    field: _render(kwargs[field])
                    for field in id_fields
                    if kwargs.get(field) not in (None, "", b"")
                },
            )
            dispatch.invocation(invocation)

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                dispatch.completion(
                    CompletionContext(
                        invocation=invocation,
                        success=False,
                        duration_ms=_elapsed_ms(started),
                        errors=[f"{type(exc).__name__}: {exc}"],
                        error_categories=["internal"],
                    )
                )
                raise

            errors = list(getattr(result, "errors", None) or [])
            ok = getattr(result, "ok", None)
            dispatch.completion(
                CompletionContext(
                    invocation=invocation,
                    success=ok if isinstance(ok, bool) else not errors,
                    duration_ms=_elapsed_ms(started),
                    errors=[_summary(error) for error in errors if getattr(error, "message", "")],
                    error_categories=[c for c in map(_category, errors) if c],
                )
            )
            return result

        return wrapper

    return decorator


class _Dispatcher:
    """Fans events out to concerns, isolating concern failures."""

    def __init__(self, hooks: tuple[PublicApiInstrumentationConcern, ...], logger: Any | None) -> None:
        self._hooks = hooks
        self._logger = logger

    def invocation(self, context: InvocationContext) -> None:
        for hook in self._hooks:
            self._call(hook, "invocation", context, lambda: hook.on_invocation(context))

    def completion(self, context: CompletionContext) -> None:
        for hook in self._hooks:
            self._call(hook, "completion", context.invocation, lambda: hook.on_completion(context))

    def _call(
        self,
        hook: PublicApiInstrumentationConcern,
        stage: str,
        invocation: InvocationContext,
        event: Callable[[], None],
    ) -> None:
        try:
            event()
        except Exception as exc:  # noqa: BLE001
            if self._logger is None:
                return
            with ctx.log_context(
                {
                    ctx.EVENT: "public_api_instrumentation_failure",
                    ctx.COMPONENT_ID: invocation.component_id,
                    ctx.API_NAME: invocation.api_name,
                    ctx.STAGE: stage,
                    ctx.CONCERN: type(hook).__name__,
                    ctx.ERRORS: [f"{type(exc).__name__}: {exc}"],
                }
            ):
                self._logger.warning("Public API instrumentation concern failed")


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)


def _render(value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def _meta_value(meta: object | None, name: str) -> str | None:
    value = getattr(meta, name, None)
    return None if value in (None, "") else str(value)


def _summary(error: object) -> str:
    code = getattr(error, "code", None)
    message = str(getattr(error, "message", ""))
    return f"{code}: {message}" if code else message


def _category(error: object) -> str:
    raw = getattr(error, "category", None)
    return str(getattr(raw, "value", raw) or "")


def _call_fields(context: InvocationContext) -> dict[str, object]:
    return {
        ctx.EVENT: "public_api_invocation",
        ctx.COMPONENT_ID: context.component_id,
        ctx.API_NAME: context.api_name,
        ctx.TRACE_ID: context.trace_id,
        ctx.ENVELOPE_ID: context.envelope_id,
        ctx.PRINCIPAL: context.principal,
        **context.references,
    }


@lru_cache(maxsize=1)
def _otel_metrics_concern() -> PublicApiMetricsConcern | None:
    """Return OpenTelemetry-backed metrics, or ``None`` without the otel extra."""
    try:
        from opentelemetry import metrics
    except ImportError:
        return None

    meter = metrics.get_meter(_METER_NAME)
    return PublicApiMetricsConcern(
        calls_total=meter.create_counter(
            name="sns_public_api_calls_total",
            description="Public API calls by component, method and outcome.",
            unit="1",
        ),
        duration_ms=meter.create_histogram(
            name="sns_public_api_duration_ms",
            description="Public API call latency.",
            unit="ms",
        ),
        errors_total=meter.create_counter(
            name="sns_public_api_errors_total",
            description="Public API failures by error category.",
            unit="1",
        ),
    )
