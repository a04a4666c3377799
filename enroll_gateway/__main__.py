#!/usr/bin/env python3
"""
Entry point for running as module: python -m enroll_gateway
"""

import asyncio

from enroll_gateway.app import main


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
