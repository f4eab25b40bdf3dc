"""Package entry point for ``python -m predictive_text_studio``.

WHY: Lets users run the CLI without installing the console script.

HOW: Delegates to the CLI's main() function, which dispatches to the
compile, catalog and serve subcommands.
"""

from predictive_text_studio.cli import main

if __name__ == "__main__":
    main()
