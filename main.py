"""Local/PaaS entrypoint.

Platforms that look for an ``app`` object in ``main.py`` pick it up here.
"""

from lucky_draw import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="127.0.0.1", port=8000, debug=False, threaded=True)
