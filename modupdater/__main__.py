#!/usr/bin/env python3
from modupdater.cli.main import cli

if __name__ == "__main__":
    cli(prog_name="modupdater")
