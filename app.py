"""
Bitcoin Price Gauge launcher
Runs the FastAPI backend and the Streamlit dashboard side by side.

The dashboard is only started once the backend answers `/health`, and both
child processes are stopped when either one exits or on Ctrl+C.
"""

import atexit
import os
import signal
import subprocess
import sys
import time
import webbrowser
from pathlib import Path

import requests


ROOT = Path(__file__).resolve().parent
DASHBOARD_PORT = 8501

_children = {}


def backend_command(port):
    return [sys.executable, "-m", "uvicorn", "main:app", "--host", "127.0.0.1", "--port", str(port)]


def dashboard_command(port=DASHBOARD_PORT):
    return [
        sys.executable, "-m", "streamlit", "run", "app.py",
        "--server.headless", "true",
        "--server.port", str(port),
    ]


def child_env(port):
    """Environment shared by both children; explicit settings win"""
    env = dict(os.environ)
    env.setdefault("GAUGE_DATA_DIR", str(ROOT / "data"))
    env.setdefault("GAUGE_BACKEND_URL", f"http://localhost:{port}")
    return env


def _spawn(name, command, cwd, env, quiet=False):
    output = subprocess.DEVNULL if quiet else None
    proc = subprocess.Popen(command, cwd=str(cwd), env=env, stdout=output, stderr=output)
    _children[name] = proc
    return proc


def wait_for_backend(base_url, attempts=30, interval=1.0):
    """Poll `/health` until it answers 200. Returns False when it never does."""
    for _ in range(attempts):
        try:
            if requests.get(f"{base_url}/health", timeout=2).status_code == 200:
                return True
        except requests.exceptions.RequestException:
            pass
        time.sleep(interval)
    return False


def stop_children():
    while _children:
        name, proc = _children.popitem()
        if proc.poll() is not None:
            continue
        if sys.platform == "win32":
            subprocess.run(["taskkill", "/F", "/T", "/PID", str(proc.pid)], capture_output=True)
            continue
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            print(f"{name} did not stop, killing")
            proc.kill()


def _on_signal(signum, frame):
    print("\nShutting down...")
    stop_children()
    sys.exit(0)


def _first_exited():
    for name, proc in _children.items():
        if proc.poll() is not None:
            return name
    return None


def main():
    port = int(os.environ.get("GAUGE_PORT", "8000"))
    env = child_env(port)
    backend_url = env["GAUGE_BACKEND_URL"]
    dashboard_url = f"http://localhost:{DASHBOARD_PORT}"

    atexit.register(stop_children)
    signal.signal(signal.SIGINT, _on_signal)
    if sys.platform != "win32":
        signal.signal(signal.SIGTERM, _on_signal)

    print("\nStarting Bitcoin Price Gauge backend...")
    _spawn("backend", backend_command(port), ROOT / "backend", env)

    if not wait_for_backend(backend_url):
        print(f"Backend did not become healthy at {backend_url}")
        stop_children()
        return 1

    print("Starting dashboard...")
    _spawn("dashboard", dashboard_command(), ROOT / "frontend", env, quiet=True)

    print(f"\nAPI:       {backend_url}/docs")
    print(f"Dashboard: {dashboard_url}")
    print("\nPress Ctrl+C to stop\n")
    webbrowser.open(dashboard_url)

    try:
        while True:
            exited = _first_exited()
            if exited:
                print(f"{exited} stopped unexpectedly")
                return 1
            time.sleep(1)
    except KeyboardInterrupt:
        return 0
    finally:
        stop_children()


if __name__ == "__main__":
    sys.exit(main())
