"""Entry point for ``python -m caption_repair``."""

from .cli import main

if __name__ == "__main__":
    main()
