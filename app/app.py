import argparse
import logging
import sys

from core.config import load_settings
from storage.pocketbase import PocketBaseClient
from services.api import TaskboardApi
from controller.app_controller import AppController
from controller.router import HOME
from controller.session import SessionState

logger = logging.getLogger("taskboard")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [taskboard] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Taskboard desktop client")
    parser.add_argument("--endpoint", help="PocketBase URL (overrides TASKBOARD_ENDPOINT)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING... (overrides TASKBOARD_LOG_LEVEL)")
    parser.add_argument("--open", default=HOME, metavar="PATH",
                        help="Start page, e.g. /verify-email?userId=...&secret=...")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = load_settings(endpoint=args.endpoint, log_level=args.log_level)
    configure_logging(settings.log_level)

    logger.info("Endpoint: %s", settings.endpoint or "<unset>")
    logger.info("Project: %s · Database: %s", settings.project_id or "<unset>", settings.database_id or "<unset>")
    missing = settings.missing()
    if missing:
        logger.warning("Missing configuration (remote calls will fail): %s", ", ".join(missing))

    # tkinter is only needed from here on
    from gui.background import BackgroundRunner
    from gui.main_window import MainWindow
    from gui.toast import Toaster

    client = PocketBaseClient(settings.endpoint, auth_collection=settings.auth_collection,
                              token_file=settings.session_file)
    api = TaskboardApi(client, settings)
    toaster = Toaster()
    # remote calls leave the Tk thread; results come back through after()
    runner = BackgroundRunner()
    session = SessionState(api, notify=toaster, runner=runner)
    controller = AppController(api, session, notify=toaster, runner=runner)
    ui = MainWindow(controller, toaster, runner, start_path=args.open)
    try:
        ui.mainloop()
    finally:
        runner.shutdown()
        session.teardown()


if __name__ == "__main__":
    main()
