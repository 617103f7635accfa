"""CherryPy cpstats exporter (server, worker thread and application stats)."""

from probex.collector.http_source import JSON, HTTPSource
from probex.exporters.base import ExporterDefinition
from probex.mapping.fields import counter, gauge, per_key
from probex.mapping.value import containing

SERVER = containing("Server")
APP = containing("Application")

FIELDS = (
    # HTTP server section
    counter((SERVER, "Accepts"), "accepts", "Connections accepted"),
    gauge((SERVER, "Accepts/sec"), "accepts_per_second", "Connections accepted per second"),
    counter((SERVER, "Bytes Read"), "bytes_read", "Bytes read by the server"),
    gauge((SERVER, "Read Throughput"), "read_throughput", "Server read throughput"),
    gauge((SERVER, "Write Throughput"), "write_throughput", "Server write throughput"),
    counter((SERVER, "Socket Errors"), "socket_errors", "Socket errors"),
    gauge((SERVER, "Threads"), "threads", "Worker threads"),
    gauge((SERVER, "Threads Idle"), "threads_idle", "Idle worker threads"),
    counter((SERVER, "Requests"), "requests", "Requests handled by the server"),
    gauge((SERVER, "Queue"), "queue", "Connections waiting for a worker"),

    # Per worker thread
    counter((SERVER, "Worker Threads"), "thread_bytes_read", "Bytes read per worker thread",
            labels=("thread",), extract=per_key("Bytes Read")),
    counter((SERVER, "Worker Threads"), "thread_bytes_written", "Bytes written per worker thread",
            labels=("thread",), extract=per_key("Bytes Written")),
    gauge((SERVER, "Worker Threads"), "thread_read_throughput", "Read throughput per worker thread",
          labels=("thread",), extract=per_key("Read Throughput")),
    counter((SERVER, "Worker Threads"), "thread_requests", "Requests per worker thread",
            labels=("thread",), extract=per_key("Requests")),
    counter((SERVER, "Worker Threads"), "thread_work_time", "Busy seconds per worker thread",
            labels=("thread",), extract=per_key("Work Time")),
    gauge((SERVER, "Worker Threads"), "thread_write_throughput", "Write throughput per worker thread",
          labels=("thread",), extract=per_key("Write Throughput")),

    # Application section
    gauge((APP, "Bytes Read/Request"), "bytes_read_per_request"),
    gauge((APP, "Bytes Read/Second"), "bytes_read_per_second"),
    gauge((APP, "Bytes Written/Request"), "bytes_written_per_request"),
    gauge((APP, "Bytes Written/Second"), "bytes_written_per_second"),
    gauge((APP, "Current Requests"), "current_requests", "Requests in flight"),
    gauge((APP, "Current Time"), "current_time", "Server clock, seconds since epoch"),
    gauge((APP, "Requests/Second"), "requests_per_second"),
    counter((APP, "Total Bytes Read"), "app_bytes_read", "Bytes read by the application"),
    counter((APP, "Total Bytes Written"), "app_bytes_written", "Bytes written by the application"),
    counter((APP, "Total Requests"), "app_requests", "Requests handled by the application"),
    counter((APP, "Total Time"), "app_time", "Seconds spent handling requests"),
    gauge((APP, "Uptime"), "uptime", "Current uptime in seconds"),

    # Per request handled (recent requests table)
    gauge((APP, "Requests"), "request_bytes_read", "Bytes read per tracked request",
          labels=("request",), extract=per_key("Bytes Read")),
    gauge((APP, "Requests"), "request_bytes_written", "Bytes written per tracked request",
          labels=("request",), extract=per_key("Bytes Written")),
    gauge((APP, "Requests"), "request_processing_time", "Processing seconds per tracked request",
          labels=("request",), extract=per_key("Processing Time")),
)


def build_source(target):
    return HTTPSource(
        target.uri,
        timeout=target.timeout,
        content_type=target.content_type or JSON,
        user_agent=target.user_agent,
    )


DEFINITION = ExporterDefinition(
    key="cpy",
    description="CherryPy cpstats status page",
    namespace="cpy",
    address=":19000",
    fields=FIELDS,
    build_source=build_source,
)
