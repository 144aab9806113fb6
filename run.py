"""Project root entry point for launching the web interface."""

from __future__ import annotations

import os


def main():
    from grim_translator.web import create_app

    app = create_app()
    app.run(
        host=os.environ.get("GRIM_TRANSLATOR_HOST", "127.0.0.1"),
        port=int(os.environ.get("GRIM_TRANSLATOR_PORT", "5500")),
        debug=os.environ.get("GRIM_TRANSLATOR_DEBUG", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()
