"""
Fake JSON status pages for trying the exporters without real services.

    python -m probex.mock.fake_status_server
    probex wmcore --uri http://localhost:9100/wmcore/status
    probex das2go --uri http://localhost:9100/das/status

Each page is regenerated on every request with slowly drifting values.
"""

from __future__ import annotations

import json
import math
import random
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Dict, Optional, Tuple, Union

_rng = random.Random(42)
_started = time.time()

Body = Union[dict, list, str, Callable[[], Union[dict, list, str]]]
Page = Union[Body, Tuple[int, Body]]


def _uptime() -> float:
    return round(time.time() - _started, 1)


def _connections(n: int) -> list:
    states = ["ESTABLISHED"] * 3 + ["LISTEN", "TIME_WAIT", "CLOSE_WAIT"]
    return [
        ["tcp", f"127.0.0.1:{8000 + i}", f"127.0.0.1:{40000 + i}", _rng.choice(states)]
        for i in range(n)
    ]


def wmcore_status() -> dict:
    t = _uptime()
    return {
        "uptime": t,
        "cpu_percent": round(20 + 15 * math.sin(t * 0.05) + _rng.uniform(0, 5), 1),
        "memory_percent": round(_rng.uniform(10, 30), 1),
        "num_threads": _rng.randint(8, 32),
        "num_fds": _rng.randint(20, 200),
        "connections": _connections(_rng.randint(1, 12)),
    }


def reqmgr_status() -> dict:
    server = wmcore_status()
    server.update({
        "cpu_num": _rng.randint(0, 7),
        "time": time.time(),
        "memory_full_info": {
            "rss": 250_000_000, "vms": 1_200_000_000, "swap": 0,
            "pss": 240_000_000, "uss": 230_000_000,
        },
        "cpu_times": {
            "user": 120.5, "system": 30.2, "children_user": 0.0, "children_system": 0.0,
        },
    })
    return {"result": [{"server": server}]}


def das2go_status() -> dict:
    t = _uptime()
    cores = [round(_rng.uniform(0, 100), 1) for _ in range(4)]
    return {
        "getCalls": int(t * 3),
        "postCalls": int(t),
        "getRequests": int(t * 3),
        "postRequests": int(t),
        "Uptime": t,
        "CPU": cores,
        "Memory": {
            "Virtual": {"total": 16e9, "free": 6e9, "used": 10e9, "usedPercent": 62.5},
            "Swap": {"total": 2e9, "free": 2e9, "used": 0, "usedPercent": 0.0},
        },
        "MemStats": {
            "Sys": 72e6, "Alloc": 30e6, "TotalAlloc": 900e6, "HeapSys": 60e6, "StackSys": 2e6,
        },
        "Load": {"load1": 0.5, "load5": 0.7, "load15": 0.9},
        "NGo": _rng.randint(10, 80),
        "NThreads": 12,
        "OpenFiles": [{"path": f"/tmp/f{i}", "fd": i} for i in range(_rng.randint(3, 9))],
        "Connections": [{"status": s} for s in ("ESTABLISHED", "LISTEN", "TIME_WAIT")],
    }


def cherrypy_status() -> dict:
    t = _uptime()
    return {
        "CherryPy HTTPServer 140234": {
            "Accepts": int(t * 2), "Accepts/sec": 2.0, "Bytes Read": int(t * 500),
            "Read Throughput": 500.0, "Write Throughput": 2000.0, "Socket Errors": 0,
            "Threads": 10, "Threads Idle": 8, "Requests": int(t * 2), "Queue": 0,
            "Worker Threads": {
                f"CP Server Thread-{i}": {
                    "Bytes Read": 1000 * i, "Bytes Written": 4000 * i, "Read Throughput": 50.0,
                    "Requests": 10 * i, "Work Time": 1.5 * i, "Write Throughput": 200.0,
                }
                for i in range(3, 6)
            },
        },
        "Application": {
            "Bytes Read/Request": 250.0, "Bytes Read/Second": 500.0,
            "Bytes Written/Request": 1000.0, "Bytes Written/Second": 2000.0,
            "Current Requests": 1, "Current Time": time.time(), "Requests/Second": 2.0,
            "Total Bytes Read": int(t * 500), "Total Bytes Written": int(t * 2000),
            "Total Requests": int(t * 2), "Total Time": t * 0.1, "Uptime": t,
            "Requests": {},
        },
    }


DEFAULT_PAGES: Dict[str, Page] = {
    "/wmcore/status": wmcore_status,
    "/reqmgr/status": reqmgr_status,
    "/das/status": das2go_status,
    "/cpstats": cherrypy_status,
    "/broken": "this is not json",
    "/unavailable": (503, "service unavailable"),
}


def _render(page) -> Tuple[int, bytes, str]:
    status = 200
    if isinstance(page, tuple):
        status, page = page
    if callable(page):
        page = page()
    if isinstance(page, str):
        return status, page.encode(), "text/plain; charset=utf-8"
    return status, json.dumps(page).encode(), "application/json"


def make_handler(pages: Optional[Dict[str, Page]] = None):
    """Handler class serving `pages`: path -> body, or path -> (status, body)."""
    routes = DEFAULT_PAGES if pages is None else pages

    class _StatusHandler(BaseHTTPRequestHandler):
        def do_GET(self):
            page = routes.get(self.path.split("?", 1)[0])
            if page is None:
                self.send_response(404)
                self.end_headers()
                return
            status, body, content_type = _render(page)
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass  # Suppress request logging noise

    return _StatusHandler


def run_fake_server(host: str = "127.0.0.1", port: int = 9100):
    server = HTTPServer((host, port), make_handler())
    print(f"Fake status server running at http://{host}:{port}")
    for path in DEFAULT_PAGES:
        print(f"  http://{host}:{port}{path}")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
