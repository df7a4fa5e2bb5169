"""Development server entry point."""

import logging
import os

from paste.translogger import TransLogger  # type: ignore[import-untyped]
from waitress import serve

from oidc_authcode import create_app
from oidc_authcode.config import Settings


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings = Settings.load()
    app = create_app(settings)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    if settings.flask_env in ("development", "testing"):
        app.logger.info("Running in debug mode")
        app.run(host=host, port=port, debug=True)
    else:
        wsgi = TransLogger(app, setup_console_handler=False)
        threads = int(os.getenv("WAITRESS_THREADS", 50))
        wsgi.logger.info(f"Using Waitress WSGI server with {threads} threads")
        serve(wsgi, host=host, port=port, threads=threads)


if __name__ == "__main__":
    main()
