"""Entry point for ``python -m ciguard``."""

from ciguard.cli.main import main


if __name__ == "__main__":
    main()
