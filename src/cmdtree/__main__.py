"""Allow ``python -m cmdtree`` to start the demo application."""

from cmdtree.demo.app import cli

if __name__ == "__main__":
    cli()
