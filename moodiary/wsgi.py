"""WSGI entrypoint for moodiary (``gunicorn -c moodiary/gunicorn.conf.py moodiary.wsgi:app``)."""

from __future__ import annotations

import os

from moodiary import create_app

app = create_app(os.environ.get("APP_ENV"))

if __name__ == "__main__":
    host = os.environ.get("FLASK_RUN_HOST", "127.0.0.1")
    port = int(os.environ.get("FLASK_RUN_PORT", "5001"))
    app.run(host=host, port=port)  # nosec B104
