import logging
import os
from typing import Sequence

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import Info
from prometheus_fastapi_instrumentator import Instrumentator

from intercept.proxy.route import build_interceptor, router
from intercept.vars import (
    OTLP_ENDPOINT,
    OTLP_HEADERS,
    SERVICE_NAME,
    STATIC_DIR,
    STATIC_PATH,
)

logger = logging.getLogger("uvicorn.error")

app = FastAPI()
instrumentator = Instrumentator()

instrumentator.instrument(app).expose(app)


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that drops the ``http.response.body`` send spans FastAPI
    instrumentation emits for every response. An intercepted page is traced
    by its ``intercept_request`` span; the body send adds nothing to it.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )

FastAPIInstrumentor.instrument_app(app, excluded_urls="metrics")

app_info = Info("fastapi_app_info", "Application Info")
app_info.info({"app_name": SERVICE_NAME})

# Shared read-only state for all requests
app.state.interceptor = build_interceptor()

if os.path.isdir(STATIC_DIR):
    app.mount(STATIC_PATH, StaticFiles(directory=STATIC_DIR), name="public")
    logger.info(f"Serving static files from {STATIC_DIR} at {STATIC_PATH}")
else:
    logger.info(f"No static directory at {STATIC_DIR}, not serving {STATIC_PATH}")

app.include_router(router)
