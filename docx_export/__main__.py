"""Package entry point for ``python -m docx_export``.

WHY: Users run the exporter as ``python -m docx_export notes.md``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

from docx_export.cli import main

if __name__ == "__main__":
    main()
