"""Entry point for running vmconverge as a module.

This allows running the CLI with:
    python -m vmconverge
"""

from vmconverge.cli.main import main

if __name__ == "__main__":
    main()
