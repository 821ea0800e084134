"""Application entry point for Parlote backend server."""

from parlote.app import App
from parlote.config import Config
from parlote.logging import setup_logging
from parlote.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
