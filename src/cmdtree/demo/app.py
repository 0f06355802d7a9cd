"""Demo application wiring and console-script entry point."""

from __future__ import annotations

from cmdtree.cli import application
from cmdtree.cli.application import ApplicationConfig, InteractiveApplication
from cmdtree.demo.commands import (
    STORE_SERVICE,
    ConfigCommand,
    GreetCommand,
    MathCommand,
    StatusCommand,
)
from cmdtree.version import __version__


def build_app() -> InteractiveApplication:
    app = InteractiveApplication(
        ApplicationConfig(
            name="cmdtree-demo",
            display_name="cmdtree demo",
            version=__version__,
            commands=[GreetCommand(), MathCommand(), StatusCommand(), ConfigCommand()],
        )
    )
    app.context.set_service(STORE_SERVICE, {})
    return app


def cli() -> None:
    """Console-script entry point."""
    application.cli(build_app)
