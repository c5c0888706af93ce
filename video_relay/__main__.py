"""Package entry point for ``python -m video_relay``.

WHY: Operators start the bot with ``python -m video_relay`` (long-running)
or ``python -m video_relay --once`` from cron.

HOW: Delegates to the CLI's main() function.
"""

from video_relay.cli import main

if __name__ == "__main__":
    main()
